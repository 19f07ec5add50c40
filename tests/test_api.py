import asyncio

import pytest
from fastapi.testclient import TestClient

from capacity.api import create_app
from capacity.repository import SqlStationRepository


@pytest.fixture
def client(repository):
    with TestClient(create_app(repository)) as client:
        yield client


def create_station(client, **overrides):
    payload = {"name": "Press line", "operation_ids": ["op-b", "op-a"], "substation_count": 2}
    payload.update(overrides)
    return client.post("/stations", json=payload)


def test_health(client):
    assert client.get("/").json() == {"status": "healthy"}


def test_create_and_read_station(client):
    response = create_station(client)

    assert response.status_code == 201
    station = response.json()
    assert station["id"] == "ST-AB-001"
    assert [sub["code"] for sub in station["substations"]] == ["ST-AB-001-1", "ST-AB-001-2"]
    assert station["effective_skills"] == ["drill", "weld"]

    detail = client.get("/stations/ST-AB-001").json()
    assert [skill["id"] for skill in detail["inherited_skills"]] == ["drill", "weld"]
    assert [worker["id"] for worker in detail["compatible_workers"]] == ["w-1", "w-3"]


def test_station_survives_reload(repository, client):
    create_station(client)

    with TestClient(create_app(repository)) as fresh:
        assert [s["id"] for s in fresh.get("/stations").json()] == ["ST-AB-001"]


def test_validation_errors(client):
    assert create_station(client, name=" ").status_code == 400
    assert create_station(client, operation_ids=["op-inspect"]).status_code == 400
    assert create_station(client, substation_count=0).status_code == 422
    assert client.get("/stations").json() == []


def test_substation_lifecycle(client):
    create_station(client, substation_count=1)

    response = client.delete("/stations/ST-AB-001/substations/ST-AB-001-1")
    assert response.status_code == 409

    response = client.post("/stations/ST-AB-001/substations", json={"count": 2})
    assert [sub["code"] for sub in response.json()["substations"]] == [
        "ST-AB-001-1", "ST-AB-001-2", "ST-AB-001-3",
    ]

    response = client.delete("/stations/ST-AB-001/substations/ST-AB-001-2")
    assert response.status_code == 200

    response = client.post("/stations/ST-AB-001/substations/ST-AB-001-3/toggle")
    assert response.json()["substations"][1] == {
        "code": "ST-AB-001-3", "technical_status": "passive",
    }

    response = client.put(
        "/substations/ST-AB-001-1/technical-status", json={"technical_status": "maintenance"}
    )
    assert response.json()["substations"][0]["technical_status"] == "maintenance"


def test_not_found(client):
    assert client.get("/stations/ST-ZZ-001").status_code == 404
    assert client.delete("/stations/ST-ZZ-001").status_code == 404
    response = client.put("/substations/nope/technical-status", json={"technical_status": "passive"})
    assert response.status_code == 404


def test_duplicate_and_delete(client):
    create_station(client)

    response = client.post("/stations/ST-AB-001/duplicate")
    assert response.status_code == 201
    assert response.json()["id"] == "ST-AB-002"
    assert response.json()["name"] == "Press line (Copy)"

    assert client.delete("/stations/ST-AB-001").status_code == 204
    assert [s["id"] for s in client.get("/stations").json()] == ["ST-AB-002"]


def test_update_blocks_inherited_skill_removal(client):
    create_station(client, station_specific_skills=["weld", "paint"])

    response = client.patch("/stations/ST-AB-001", json={
        "name": "Press line",
        "operation_ids": ["op-a", "op-b"],
        "station_specific_skills": ["paint"],
    })
    assert response.status_code == 400

    response = client.patch("/stations/ST-AB-001", json={
        "name": "Press line",
        "operation_ids": ["op-a"],
        "station_specific_skills": ["paint"],
    })
    assert response.status_code == 200
    assert response.json()["effective_skills"] == ["drill", "paint"]


def test_bulk_save_and_filters(client):
    response = client.put("/stations", json=[
        {
            "id": "ST-W-001",
            "name": "Weld cell",
            "status": "maintenance",
            "operation_ids": ["op-weld"],
            "substations": [{"code": "ST-W-001-1"}],
        },
        {
            "id": "ST-P-001",
            "name": "Paint booth",
            "operation_ids": ["op-paint"],
            "substations": [{"code": "ST-P-001-1", "technical_status": "passive"}],
        },
    ])
    assert response.status_code == 200

    rows = client.get("/stations", params={"status": "maintenance"}).json()
    assert [row["id"] for row in rows] == ["ST-W-001"]

    rows = client.get("/stations", params={"skill": "paint", "sort": "name"}).json()
    assert [row["id"] for row in rows] == ["ST-P-001"]

    response = client.post("/stations/ST-W-001/toggle-status")
    assert response.json()["status"] == "active"


def test_create_skill(client):
    response = client.post("/skills", json={"name": "Grinding"})

    assert response.status_code == 201
    assert response.json()["name"] == "Grinding"


class UnreliableRepository(SqlStationRepository):
    """Fails the first ``failed_loads`` station loads, and every save while ``fail_saves`` is set."""

    def __init__(self, session_scope, failed_loads=0):
        super().__init__(session_scope)
        self.failed_loads = failed_loads
        self.fail_saves = False

    async def load_stations(self):
        if self.failed_loads:
            self.failed_loads -= 1
            raise RuntimeError("database unavailable")
        return await super().load_stations()

    async def save_stations(self, stations):
        if self.fail_saves:
            raise RuntimeError("database unavailable")
        await super().save_stations(stations)


def test_failed_startup_load_refuses_changes(repository, db_scope, make_station):
    existing = make_station(numbers=(1, 2, 3), name="Existing press")
    asyncio.run(repository.save_stations([existing]))
    unreliable = UnreliableRepository(db_scope, failed_loads=1)

    with TestClient(create_app(unreliable)) as client:
        assert create_station(client).status_code == 503
        assert asyncio.run(repository.load_stations()) == [existing]

        assert client.post("/reload").json() == {"stations": 1}
        response = create_station(client)
        assert response.status_code == 201
        assert response.json()["id"] == "ST-AB-002"


def test_save_failure_returns_503_and_keeps_state(repository, db_scope):
    unreliable = UnreliableRepository(db_scope)

    with TestClient(create_app(unreliable)) as client:
        create_station(client)
        before = client.get("/stations").json()
        unreliable.fail_saves = True

        response = client.post("/stations/ST-AB-001/substations", json={"count": 1})

        assert response.status_code == 503
        assert client.get("/stations").json() == before


def test_list_substations(client):
    create_station(client)
    client.put("/stations", json=[{
        "id": "ST-P-001",
        "name": "Paint booth",
        "operation_ids": ["op-paint"],
        "substations": [{"code": "ST-P-001-1", "technical_status": "passive"}],
    }])

    rows = client.get("/substations").json()
    assert [(row["station_id"], row["code"]) for row in rows] == [
        ("ST-AB-001", "ST-AB-001-1"),
        ("ST-AB-001", "ST-AB-001-2"),
        ("ST-P-001", "ST-P-001-1"),
    ]

    rows = client.get("/substations", params={"station_id": "ST-P-001"}).json()
    assert rows == [
        {"station_id": "ST-P-001", "code": "ST-P-001-1", "technical_status": "passive"},
    ]
    assert client.get("/substations", params={"station_id": "ST-ZZ-001"}).status_code == 404


def test_bulk_save_rejects_foreign_substation_codes(client):
    response = client.put("/stations", json=[{
        "id": "ST-W-001",
        "name": "Weld cell",
        "operation_ids": ["op-weld"],
        "substations": [{"code": "ST-W-001-0"}, {"code": "OTHER-7"}],
    }])

    assert response.status_code == 400
    assert client.get("/substations").json() == []
