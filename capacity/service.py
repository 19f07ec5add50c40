import logging
from typing import Collection, Iterable, List, Optional

from capacity.catalog import Catalog
from capacity.entities import Station, StationDraft
from capacity.errors import PersistenceError, ValidationError
from capacity.matcher import find_compatible_workers
from capacity.skills import compute_effective_skills, split_skills
from capacity.store import CatalogBackend, StationStore

logger = logging.getLogger(__name__)


SORT_KEYS = {
    "id": lambda station, effective: station.id,
    "name": lambda station, effective: station.name.lower(),
    "substations": lambda station, effective: len(station.substations),
    "operations": lambda station, effective: len(station.operation_ids),
    "skills": lambda station, effective: len(effective),
}


class StationService:
    """
    Query and command surface over the station store.

    Every station returned is a dict built from ``Station.to_dict`` with the
    effective skills added, computed on read from the current catalog.
    """

    def __init__(self, store: StationStore, catalog_backend: CatalogBackend):
        self.store = store
        self.catalog_backend = catalog_backend

    @property
    def catalog(self) -> Catalog:
        return self.store.catalog

    async def load(self) -> None:
        """
        Reload the catalog, then the stations, from the backends.

        The store refuses mutations until both loads have succeeded.
        """
        self.store.mark_stale()
        try:
            operations = await self.catalog_backend.load_operations()
            skills = await self.catalog_backend.load_skills()
            workers = await self.catalog_backend.load_workers()
        except Exception as e:
            logger.error(f"Could not load catalog: {e}")
            raise PersistenceError("Could not load catalog") from e

        self.catalog.replace(operations, skills, workers)
        logger.info(
            f"Catalog loaded: {len(self.catalog.operations)} operations, "
            f"{len(self.catalog.skills)} skills, {len(self.catalog.workers)} workers"
        )
        await self.store.load()

    def _skill_refs(self, skill_ids: Iterable[str]) -> List[dict]:
        return [
            {"id": skill_id, "name": self.catalog.skill_name(skill_id)}
            for skill_id in sorted(skill_ids)
        ]

    def describe(self, station: Station) -> dict:
        data = station.to_dict()
        data["effective_skills"] = sorted(compute_effective_skills(station, self.catalog))
        return data

    def list_stations(
        self,
        search: Optional[str] = None,
        statuses: Optional[Collection[str]] = None,
        skills: Optional[Collection[str]] = None,
        operations: Optional[Collection[str]] = None,
        sort: Optional[str] = None,
        descending: bool = False,
    ) -> List[dict]:
        """
        List stations, optionally filtered and sorted.

        Args:
            search: Case-insensitive text matched against id, name, description and location
            statuses: Keep stations whose status is one of these
            skills: Keep stations whose effective skills include any of these
            operations: Keep stations assigned any of these operations
            sort: One of ``SORT_KEYS``; insertion order when omitted
            descending: Reverse the sort order
        """
        if sort is not None and sort not in SORT_KEYS:
            raise ValidationError(f"Unknown sort field: {sort!r}")

        needle = (search or "").strip().lower()
        rows = []
        for station in self.store.stations:
            effective = compute_effective_skills(station, self.catalog)

            if needle:
                haystack = " ".join(
                    [station.id, station.name, station.description, station.location]
                ).lower()
                if needle not in haystack:
                    continue
            if statuses and str(station.status) not in statuses:
                continue
            if skills and not effective & set(skills):
                continue
            if operations and not set(station.operation_ids) & set(operations):
                continue

            rows.append((station, effective))

        if sort is not None:
            key = SORT_KEYS[sort]
            rows.sort(key=lambda row: key(*row), reverse=descending)

        return [self.describe(station) for station, _ in rows]

    def get_station_detail(self, station_id: str) -> dict:
        station = self.store.get(station_id)
        inherited, custom = split_skills(station, self.catalog)
        match = find_compatible_workers(station, self.catalog.workers, self.catalog)

        return {
            "station": self.describe(station),
            "inherited_skills": self._skill_refs(inherited),
            "custom_skills": self._skill_refs(custom),
            "required_skills": self._skill_refs(match.required_skills),
            "compatible_workers": [worker.to_dict() for worker in match.workers],
        }

    def list_substations(self, station_id: Optional[str] = None) -> List[dict]:
        """Substations in station order, or only those of ``station_id`` when given."""
        stations = [self.store.get(station_id)] if station_id else self.store.stations
        return [
            {"station_id": station.id, **substation.to_dict()}
            for station in stations
            for substation in station.substations
        ]

    def compatible_workers(self, station_id: str) -> dict:
        station = self.store.get(station_id)
        match = find_compatible_workers(station, self.catalog.workers, self.catalog)
        return {
            "station_id": station.id,
            "station_name": station.name,
            "required_skills": self._skill_refs(match.required_skills),
            "compatible_workers": [worker.to_dict() for worker in match.workers],
        }

    async def create_station(self, draft: StationDraft, substation_count: int = 1) -> dict:
        return self.describe(await self.store.create_station(draft, substation_count))

    async def update_station(self, station_id: str, draft: StationDraft) -> dict:
        return self.describe(await self.store.update_station(station_id, draft))

    async def duplicate_station(self, station_id: str, name: Optional[str] = None) -> dict:
        return self.describe(await self.store.duplicate_station(station_id, name))

    async def save_stations(self, stations: Iterable[Station]) -> List[dict]:
        return [self.describe(station) for station in await self.store.save_stations(stations)]

    async def delete_station(self, station_id: str) -> None:
        await self.store.delete_station(station_id)

    async def toggle_station_status(self, station_id: str) -> dict:
        return self.describe(await self.store.toggle_station_status(station_id))

    async def add_substations(self, station_id: str, requested_count: int) -> dict:
        return self.describe(await self.store.add_substations(station_id, requested_count))

    async def delete_substation(self, station_id: str, code: str) -> dict:
        return self.describe(await self.store.delete_substation(station_id, code))

    async def toggle_substation_status(self, station_id: str, code: str) -> dict:
        return self.describe(await self.store.toggle_substation_status(station_id, code))

    async def update_substation_technical_status(self, code: str, new_status: str) -> dict:
        return self.describe(await self.store.set_substation_technical_status(code, new_status))

    async def create_skill(self, name: str) -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Skill name must not be empty")

        try:
            skill = await self.catalog_backend.create_skill(name)
        except Exception as e:
            logger.error(f"Could not create skill {name!r}: {e}")
            raise PersistenceError(f"Could not create skill {name!r}") from e

        self.catalog.add_skill(skill)
        logger.info(f"Created skill {skill.id} ({skill.name})")
        return {"id": skill.id, "name": skill.name}
