"""
Substation lifecycle transitions.

Every function here is pure: it returns a new substation or station and
leaves its arguments untouched. ``capacity.store`` applies the results to
the live station list and persists them.
"""

import dataclasses
from typing import Final, Tuple

from capacity.allocator import allocate_additional_substations
from capacity.entities import Station, Substation
from capacity.enums import StationStatus, TechnicalStatus
from capacity.errors import InvariantViolation, NotFoundError, ValidationError

TECHNICAL_STATUS_CYCLE: Final[Tuple[TechnicalStatus, ...]] = (
    TechnicalStatus.ACTIVE,
    TechnicalStatus.PASSIVE,
    TechnicalStatus.MAINTENANCE,
)


def next_technical_status(status: TechnicalStatus) -> TechnicalStatus:
    index = TECHNICAL_STATUS_CYCLE.index(TechnicalStatus(status))
    return TECHNICAL_STATUS_CYCLE[(index + 1) % len(TECHNICAL_STATUS_CYCLE)]


def toggle_technical_status(substation: Substation) -> Substation:
    return dataclasses.replace(
        substation, technical_status=next_technical_status(substation.technical_status)
    )


def parse_technical_status(value: str) -> TechnicalStatus:
    try:
        return TechnicalStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid technical status: {value!r}")


def _require_substation(station: Station, code: str) -> Substation:
    substation = station.find_substation(code)
    if substation is None:
        raise NotFoundError(f"Substation {code} not found on station {station.id}")
    return substation


def set_technical_status(station: Station, code: str, status: TechnicalStatus) -> Station:
    _require_substation(station, code)
    substations = [
        dataclasses.replace(sub, technical_status=status) if sub.code == code else sub
        for sub in station.substations
    ]
    return dataclasses.replace(station, substations=substations)


def toggle_substation(station: Station, code: str) -> Station:
    current = _require_substation(station, code)
    return set_technical_status(
        station, code, next_technical_status(current.technical_status)
    )


def delete_substation(station: Station, code: str) -> Station:
    if len(station.substations) <= 1:
        raise InvariantViolation(
            f"Station {station.id} must keep at least one substation"
        )
    _require_substation(station, code)
    remaining = [sub for sub in station.substations if sub.code != code]
    return dataclasses.replace(station, substations=remaining)


def add_substations(station: Station, requested_count: int) -> Station:
    merged = allocate_additional_substations(station, requested_count)
    return dataclasses.replace(station, substations=merged)


def toggle_station_status(station: Station) -> Station:
    """Flip a station between active and maintenance; other states become active."""
    if station.status == StationStatus.ACTIVE:
        status = StationStatus.MAINTENANCE
    else:
        status = StationStatus.ACTIVE
    return dataclasses.replace(station, status=status)
