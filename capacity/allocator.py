"""
Identifier allocation for stations and substations.

Station ids take the form ``ST-{combined code}-{sequence}``, where the
combined code is built from the semi-output codes of the assigned
operations. Substation codes append a positive integer to the station id.
"""

from typing import Iterable, List

from capacity.catalog import Catalog
from capacity.constants import (
    MAX_INITIAL_SUBSTATIONS,
    STATION_ID_PREFIX,
    STATION_SEQUENCE_WIDTH,
)
from capacity.entities import Station, Substation, sort_substations
from capacity.enums import StationStatus, TechnicalStatus
from capacity.errors import ValidationError


def combined_code(operation_ids: Iterable[str], catalog: Catalog) -> str:
    """Combined code of the operations, or an empty string if none has a code."""
    codes = {
        op.semi_output_code.strip()
        for op in catalog.resolve_operations(operation_ids)
        if op.semi_output_code and op.semi_output_code.strip()
    }
    return "".join(sorted(codes))


def derive_combined_code(operation_ids: Iterable[str], catalog: Catalog) -> str:
    code = combined_code(operation_ids, catalog)
    if not code:
        raise ValidationError(
            "At least one operation with a semi-output code is required"
        )
    return code


def generate_station_id(
    combined: str, existing_stations: Iterable[Station], catalog: Catalog
) -> str:
    """
    Next station id for a combined code.

    The sequence is the number of existing stations sharing the combined code
    plus one. It is only unique at a single point in time: deletions and
    concurrent creations can produce a sequence that is already taken.
    """
    same_code = [
        station
        for station in existing_stations
        if combined_code(station.operation_ids, catalog) == combined
    ]
    sequence = str(len(same_code) + 1).zfill(STATION_SEQUENCE_WIDTH)
    return f"{STATION_ID_PREFIX}-{combined}-{sequence}"


def allocate_substation_codes(station_id: str, count: int) -> List[str]:
    if not 1 <= count <= MAX_INITIAL_SUBSTATIONS:
        raise ValidationError(
            f"Substation count must be between 1 and {MAX_INITIAL_SUBSTATIONS}, got {count}"
        )
    return [f"{station_id}-{n}" for n in range(1, count + 1)]


def initial_substations(
    station_id: str, count: int, station_status: StationStatus
) -> List[Substation]:
    status = TechnicalStatus.for_station_status(station_status)
    return [
        Substation(code=code, technical_status=status)
        for code in allocate_substation_codes(station_id, count)
    ]


def allocate_additional_substations(
    station: Station, requested_count: int
) -> List[Substation]:
    """
    Append ``requested_count`` substations, filling the lowest free suffixes first.

    Returns the merged list sorted by numeric suffix; the station is not modified.
    """
    if requested_count < 1:
        raise ValidationError(
            f"At least one substation must be requested, got {requested_count}"
        )

    used = {sub.number for sub in station.substations}
    status = TechnicalStatus.for_station_status(station.status)

    new_entries = []
    candidate = 1
    while len(new_entries) < requested_count:
        if candidate not in used:
            new_entries.append(
                Substation(code=f"{station.id}-{candidate}", technical_status=status)
            )
            used.add(candidate)
        candidate += 1

    return sort_substations([*station.substations, *new_entries])
