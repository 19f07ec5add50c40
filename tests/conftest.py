"""
Shared fixtures for the capacity tests.

The catalog mirrors a small shop floor: two operations whose semi-output
codes combine to ``AB``, single-skill welding, drilling and painting
operations, and one operation without a semi-output code.
"""
import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from capacity.catalog import Catalog
from capacity.database import create_schema, session_scope
from capacity.entities import Operation, Skill, Station, Substation, Worker
from capacity.enums import StationStatus, TechnicalStatus
from capacity.models import OperationRecord, SkillRecord, WorkerRecord
from capacity.repository import SqlStationRepository
from capacity.store import StationStore

logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

OPERATIONS = [
    Operation(id="op-b", name="Bending", type="forming", semi_output_code="B",
              required_skills=frozenset({"weld"})),
    Operation(id="op-a", name="Assembly", type="assembly", semi_output_code="A",
              required_skills=frozenset({"drill"})),
    Operation(id="op-weld", name="Welding", type="joining", semi_output_code="W",
              required_skills=frozenset({"weld", "safety"})),
    Operation(id="op-paint", name="Painting", type="finishing", semi_output_code="P",
              required_skills=frozenset({"paint"})),
    Operation(id="op-inspect", name="Inspection", type="quality", semi_output_code="",
              required_skills=frozenset({"inspect"})),
]

SKILLS = [
    Skill(id="weld", name="Welding"),
    Skill(id="drill", name="Drilling"),
    Skill(id="paint", name="Painting"),
    Skill(id="inspect", name="Inspection"),
    Skill(id="safety", name="Safety training"),
]

WORKERS = [
    Worker(id="w-1", name="Alex", skills=frozenset({"weld", "drill", "paint"})),
    Worker(id="w-2", name="Blake", skills=frozenset({"weld"})),
    Worker(id="w-3", name="Casey", skills=frozenset({"weld", "drill"}),
           status="busy", current_station_id="ST-W-001"),
]


class FakeBackend:
    """Records calls; raises on demand to exercise rollbacks."""

    def __init__(self, stations=(), fail=False):
        self.stations = list(stations)
        self.fail = fail
        self.saved = []
        self.deleted = []
        self.skills = []

    async def load_stations(self):
        return list(self.stations)

    async def save_stations(self, stations):
        if self.fail:
            raise RuntimeError("backend unavailable")
        self.saved.append(list(stations))

    async def delete_station(self, station_id):
        if self.fail:
            raise RuntimeError("backend unavailable")
        self.deleted.append(station_id)
        return True

    async def load_operations(self):
        return list(OPERATIONS)

    async def load_skills(self):
        return list(SKILLS)

    async def load_workers(self):
        return list(WORKERS)

    async def create_skill(self, name):
        if self.fail:
            raise RuntimeError("backend unavailable")
        skill = Skill(id=f"skill-{len(self.skills) + 1}", name=name)
        self.skills.append(skill)
        return skill


def build_station(station_id="ST-AB-001", operation_ids=("op-a", "op-b"),
                 numbers=(1,), status=StationStatus.ACTIVE, skills=(), name="Press line"):
    return Station(
        id=station_id,
        name=name,
        operation_ids=list(operation_ids),
        status=status,
        station_specific_skills=list(skills),
        substations=[
            Substation(code=f"{station_id}-{n}", technical_status=TechnicalStatus.ACTIVE)
            for n in numbers
        ],
    )


@pytest.fixture
def make_station():
    return build_station


@pytest.fixture
def catalog():
    return Catalog(OPERATIONS, SKILLS, WORKERS)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def failing_backend():
    return FakeBackend(fail=True)


@pytest.fixture
def store(backend, catalog):
    return StationStore(backend, catalog)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_scope(engine):
    return session_scope(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def repository(db_scope):
    with db_scope() as db:
        for op in OPERATIONS:
            db.add(OperationRecord(id=op.id, name=op.name, type=op.type,
                                   semi_output_code=op.semi_output_code,
                                   skills=sorted(op.required_skills)))
        for skill in SKILLS:
            db.add(SkillRecord(id=skill.id, name=skill.name))
        for worker in WORKERS:
            db.add(WorkerRecord(id=worker.id, name=worker.name, skills=sorted(worker.skills),
                                status=worker.status,
                                current_station_id=worker.current_station_id))
    return SqlStationRepository(db_scope)
