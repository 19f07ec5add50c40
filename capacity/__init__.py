"""Station and substation capacity model."""
