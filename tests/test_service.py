import asyncio

import pytest

from capacity.catalog import Catalog
from capacity.enums import StationStatus
from capacity.errors import NotFoundError, PersistenceError, ValidationError
from capacity.service import StationService
from capacity.store import StationStore


@pytest.fixture
def service(backend, make_station):
    backend.stations = [
        make_station("ST-AB-001", ["op-a", "op-b"], numbers=(1, 2), name="Press line",
                     skills=["paint"]),
        make_station("ST-W-001", ["op-weld"], name="Weld cell",
                     status=StationStatus.MAINTENANCE),
        make_station("ST-P-001", ["op-paint"], numbers=(1, 2, 3), name="Paint booth",
                     status=StationStatus.INACTIVE),
    ]
    service = StationService(StationStore(backend, Catalog()), backend)
    asyncio.run(service.load())
    return service


def ids(rows):
    return [row["id"] for row in rows]


class TestListStations:

    def test_effective_skills_are_computed_on_read(self, service):
        rows = service.list_stations()

        assert ids(rows) == ["ST-AB-001", "ST-W-001", "ST-P-001"]
        assert rows[0]["effective_skills"] == ["drill", "paint", "weld"]
        assert rows[1]["effective_skills"] == ["safety", "weld"]

    def test_search(self, service):
        assert ids(service.list_stations(search="booth")) == ["ST-P-001"]
        assert ids(service.list_stations(search="st-w")) == ["ST-W-001"]

    def test_filter_by_status(self, service):
        assert ids(service.list_stations(statuses={"maintenance", "inactive"})) == [
            "ST-W-001", "ST-P-001",
        ]

    def test_filter_by_effective_skill(self, service):
        assert ids(service.list_stations(skills=["paint"])) == ["ST-AB-001", "ST-P-001"]

    def test_filter_by_operation(self, service):
        assert ids(service.list_stations(operations=["op-weld", "op-a"])) == [
            "ST-AB-001", "ST-W-001",
        ]

    def test_sort(self, service):
        assert ids(service.list_stations(sort="name")) == ["ST-P-001", "ST-AB-001", "ST-W-001"]
        assert ids(service.list_stations(sort="substations", descending=True)) == [
            "ST-P-001", "ST-AB-001", "ST-W-001",
        ]

    def test_unknown_sort_field(self, service):
        with pytest.raises(ValidationError):
            service.list_stations(sort="colour")


class TestStationDetail:

    def test_inherited_and_custom_skills_are_separate(self, service):
        detail = service.get_station_detail("ST-AB-001")

        assert detail["inherited_skills"] == [
            {"id": "drill", "name": "Drilling"},
            {"id": "weld", "name": "Welding"},
        ]
        assert detail["custom_skills"] == [{"id": "paint", "name": "Painting"}]
        assert [w["name"] for w in detail["compatible_workers"]] == ["Alex"]

    def test_compatible_workers(self, service):
        result = service.compatible_workers("ST-W-001")

        assert result["station_name"] == "Weld cell"
        assert [skill["id"] for skill in result["required_skills"]] == ["safety", "weld"]
        assert result["compatible_workers"] == []

    def test_unknown_station(self, service):
        with pytest.raises(NotFoundError):
            service.get_station_detail("ST-ZZ-001")


class TestCommands:

    def test_update_substation_technical_status(self, service, backend):
        row = asyncio.run(service.update_substation_technical_status("ST-P-001-2", "passive"))

        assert row["substations"][1] == {"code": "ST-P-001-2", "technical_status": "passive"}
        assert backend.saved

    def test_create_skill_extends_catalog(self, service):
        skill = asyncio.run(service.create_skill("  Grinding "))

        assert skill == {"id": "skill-1", "name": "Grinding"}
        assert service.catalog.skill_name("skill-1") == "Grinding"

    def test_create_skill_requires_name(self, service, backend):
        with pytest.raises(ValidationError):
            asyncio.run(service.create_skill(" "))
        assert backend.skills == []

    def test_create_skill_backend_failure(self, service, backend):
        backend.fail = True
        with pytest.raises(PersistenceError):
            asyncio.run(service.create_skill("Grinding"))
