"""Error taxonomy for station and substation operations."""


class CapacityError(Exception):
    """Base class for every error raised by the capacity core."""


class ValidationError(CapacityError):
    """Input rejected before any local mutation or backend call."""


class InvariantViolation(CapacityError):
    """The mutation would break a model invariant (e.g. zero substations)."""


class NotFoundError(CapacityError):
    """A station or substation referenced by id does not exist."""


class PersistenceError(CapacityError):
    """The backend failed to save or delete; local state was rolled back."""
