"""
In-memory station state with optimistic persistence.

Every mutation validates first, then swaps the new station list in, then
awaits the backend. If the backend fails the previous list is restored and
a ``PersistenceError`` is raised, so callers never observe a partially
applied change. Station objects are never modified in place; transitions
build replacements, which keeps the previous list a valid snapshot.
"""

import dataclasses
import logging
from typing import Iterable, List, Optional, Protocol

from capacity import lifecycle
from capacity.allocator import derive_combined_code, generate_station_id, initial_substations
from capacity.catalog import Catalog
from capacity.constants import DUPLICATE_NAME_SUFFIX
from capacity.entities import Skill, Station, StationDraft, Operation, Worker, unique
from capacity.errors import NotFoundError, PersistenceError, ValidationError
from capacity.skills import ensure_skill_edit_allowed

logger = logging.getLogger(__name__)


class StationBackend(Protocol):
    async def load_stations(self) -> List[Station]: ...

    async def save_stations(self, stations: List[Station]) -> None: ...

    async def delete_station(self, station_id: str) -> bool: ...


class CatalogBackend(Protocol):
    async def load_operations(self) -> List[Operation]: ...

    async def load_skills(self) -> List[Skill]: ...

    async def load_workers(self) -> List[Worker]: ...

    async def create_skill(self, name: str) -> Skill: ...


def validate_station(station: Station) -> None:
    if not station.id:
        raise ValidationError("Station id must not be empty")
    if not station.name.strip():
        raise ValidationError(f"Station {station.id} must have a name")
    if not station.operation_ids:
        raise ValidationError(f"Station {station.id} must have at least one operation")
    if not station.substations:
        raise ValidationError(f"Station {station.id} must have at least one substation")

    for sub in station.substations:
        if sub.number < 1 or sub.code != f"{station.id}-{sub.number}":
            raise ValidationError(
                f"Substation code {sub.code!r} does not belong to station {station.id}"
            )

    numbers = [sub.number for sub in station.substations]
    if len(numbers) != len(set(numbers)):
        raise ValidationError(f"Station {station.id} has duplicate substation numbers")


class StationStore:
    def __init__(
        self,
        backend: StationBackend,
        catalog: Catalog,
        stations: Optional[Iterable[Station]] = None,
    ):
        self._backend = backend
        self.catalog = catalog
        self._stations: List[Station] = list(stations or [])
        self._loaded = True

    @property
    def stations(self) -> List[Station]:
        return list(self._stations)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def mark_stale(self) -> None:
        """Refuse mutations until the next successful ``load``."""
        self._loaded = False

    async def load(self) -> None:
        self.mark_stale()
        try:
            stations = await self._backend.load_stations()
        except Exception as e:
            logger.error(f"Could not load stations: {e}")
            raise PersistenceError("Could not load stations") from e

        self._stations = list(stations)
        self._loaded = True
        logger.info(f"Loaded {len(self._stations)} stations")

    def _ensure_loaded(self) -> None:
        # Generated ids and bulk saves depend on the full station list.
        if not self._loaded:
            raise PersistenceError("Stations are not loaded; reload before making changes")

    def get(self, station_id: str) -> Station:
        for station in self._stations:
            if station.id == station_id:
                return station
        raise NotFoundError(f"Station {station_id} not found")

    def find_by_substation(self, code: str) -> Station:
        for station in self._stations:
            if station.find_substation(code) is not None:
                return station
        raise NotFoundError(f"Substation {code} not found")

    async def _commit(self, stations: List[Station], action: str) -> None:
        self._ensure_loaded()
        previous = self._stations
        self._stations = stations

        try:
            await self._backend.save_stations(list(stations))
        except Exception as e:
            self._stations = previous
            logger.error(f"Could not {action}, restored previous state: {e}")
            raise PersistenceError(f"Could not {action}") from e

        logger.info(f"Persisted: {action}")

    def _with_station(
        self, station: Station, base: Optional[List[Station]] = None
    ) -> List[Station]:
        """Station list with ``station`` replacing its namesake, or appended."""
        replaced = False
        stations = []
        for existing in self._stations if base is None else base:
            if existing.id == station.id:
                stations.append(station)
                replaced = True
            else:
                stations.append(existing)
        if not replaced:
            stations.append(station)
        return stations

    def _warn_on_reused_id(self, station_id: str) -> None:
        # Count-based sequences repeat after deletions; the upsert then overwrites.
        if any(station.id == station_id for station in self._stations):
            logger.warning(f"Generated station id {station_id} is already in use")

    async def _replace(self, station: Station, action: str) -> Station:
        await self._commit(self._with_station(station), action)
        return station

    async def create_station(self, draft: StationDraft, substation_count: int = 1) -> Station:
        draft.validate()
        combined = derive_combined_code(draft.operation_ids, self.catalog)
        station_id = generate_station_id(combined, self._stations, self.catalog)
        self._warn_on_reused_id(station_id)

        station = Station(
            id=station_id,
            name=draft.name.strip(),
            description=draft.description,
            location=draft.location,
            status=draft.status,
            operation_ids=draft.operation_ids,
            station_specific_skills=draft.station_specific_skills,
            substations=initial_substations(station_id, substation_count, draft.status),
        )
        return await self._replace(station, f"create station {station_id}")

    async def update_station(self, station_id: str, draft: StationDraft) -> Station:
        """Edit a station's fields; its id and substations are left unchanged."""
        draft.validate()
        current = self.get(station_id)
        proposed = dataclasses.replace(
            current,
            name=draft.name.strip(),
            description=draft.description,
            location=draft.location,
            status=draft.status,
            operation_ids=draft.operation_ids,
            station_specific_skills=draft.station_specific_skills,
        )
        ensure_skill_edit_allowed(current, proposed, self.catalog)
        return await self._replace(proposed, f"update station {station_id}")

    async def duplicate_station(self, station_id: str, name: Optional[str] = None) -> Station:
        original = self.get(station_id)
        combined = derive_combined_code(original.operation_ids, self.catalog)
        new_id = generate_station_id(combined, self._stations, self.catalog)
        self._warn_on_reused_id(new_id)

        copy = dataclasses.replace(
            original,
            id=new_id,
            name=(name or "").strip() or f"{original.name}{DUPLICATE_NAME_SUFFIX}",
            substations=initial_substations(
                new_id, max(1, len(original.substations)), original.status
            ),
        )
        return await self._replace(copy, f"duplicate station {station_id} as {new_id}")

    async def save_stations(self, stations: Iterable[Station]) -> List[Station]:
        """Upsert the given stations; stations not listed are kept as they are."""
        incoming = list(stations)
        ids = [station.id for station in incoming]
        if len(ids) != len(unique(ids)):
            raise ValidationError("Station ids must be unique")
        for station in incoming:
            validate_station(station)

        merged = self._stations
        for station in incoming:
            merged = self._with_station(station, merged)

        await self._commit(merged, f"save {len(incoming)} stations")
        return incoming

    async def delete_station(self, station_id: str) -> None:
        self._ensure_loaded()
        self.get(station_id)
        previous = self._stations
        self._stations = [station for station in previous if station.id != station_id]

        try:
            deleted = await self._backend.delete_station(station_id)
        except Exception as e:
            self._stations = previous
            logger.error(f"Could not delete station {station_id}, restored previous state: {e}")
            raise PersistenceError(f"Could not delete station {station_id}") from e

        if not deleted:
            logger.warning(f"Station {station_id} was already absent from the backend")
        logger.info(f"Deleted station {station_id}")

    async def toggle_station_status(self, station_id: str) -> Station:
        station = lifecycle.toggle_station_status(self.get(station_id))
        return await self._replace(
            station, f"set station {station_id} status to {station.status}"
        )

    async def add_substations(self, station_id: str, requested_count: int) -> Station:
        station = lifecycle.add_substations(self.get(station_id), requested_count)
        return await self._replace(
            station, f"add {requested_count} substations to {station_id}"
        )

    async def delete_substation(self, station_id: str, code: str) -> Station:
        station = lifecycle.delete_substation(self.get(station_id), code)
        return await self._replace(station, f"delete substation {code}")

    async def toggle_substation_status(self, station_id: str, code: str) -> Station:
        station = lifecycle.toggle_substation(self.get(station_id), code)
        return await self._replace(station, f"toggle substation {code}")

    async def set_substation_technical_status(self, code: str, status: str) -> Station:
        technical_status = lifecycle.parse_technical_status(status)
        station = lifecycle.set_technical_status(
            self.find_by_substation(code), code, technical_status
        )
        return await self._replace(
            station, f"set substation {code} technical status to {technical_status}"
        )
