"""
SQLAlchemy-backed persistence for stations and the external catalogs.

The methods are coroutines so the store can await them, but the sessions
underneath are synchronous; each call is one short transaction.
"""

import logging
import uuid
from datetime import datetime
from typing import List

from capacity.database import SessionScope, get_db
from capacity.entities import Operation, Skill, Station, Worker
from capacity.models import (
    OperationRecord,
    SkillRecord,
    StationRecord,
    SubstationRecord,
    WorkerRecord,
)

logger = logging.getLogger(__name__)


class SqlStationRepository:
    def __init__(self, session_scope: SessionScope = get_db):
        self._session = session_scope

    async def load_stations(self) -> List[Station]:
        with self._session() as db:
            records = db.query(StationRecord).order_by(StationRecord.created_at, StationRecord.id).all()
            substations = db.query(SubstationRecord).all()

            by_station = {}
            for sub in substations:
                by_station.setdefault(sub.station_id, []).append(sub.to_dict())

            stations = []
            for record in records:
                data = record.to_dict()
                data["substations"] = by_station.get(record.id, [])
                stations.append(Station.from_dict(data))

        return stations

    async def save_stations(self, stations: List[Station]) -> None:
        """Upsert every station and replace its substation rows, in one transaction."""
        now = datetime.utcnow()

        with self._session() as db:
            for station in stations:
                record = db.query(StationRecord).filter(StationRecord.id == station.id).first()
                if record is None:
                    record = StationRecord(id=station.id, created_at=now)
                    db.add(record)

                record.name = station.name
                record.description = station.description
                record.location = station.location
                record.status = str(station.status)
                record.operation_ids = list(station.operation_ids)
                record.station_specific_skills = list(station.station_specific_skills)
                record.updated_at = now

                codes = [sub.code for sub in station.substations]
                db.query(SubstationRecord).filter(
                    SubstationRecord.station_id == station.id,
                    SubstationRecord.code.notin_(codes),
                ).delete(synchronize_session=False)

                existing = {
                    sub.code: sub
                    for sub in db.query(SubstationRecord)
                    .filter(SubstationRecord.station_id == station.id)
                    .all()
                }
                for sub in station.substations:
                    row = existing.get(sub.code)
                    if row is None:
                        row = SubstationRecord(code=sub.code, station_id=station.id, created_at=now)
                        db.add(row)
                    if row.technical_status != str(sub.technical_status):
                        row.technical_status = str(sub.technical_status)
                        row.updated_at = now

        logger.info(f"Saved {len(stations)} stations")

    async def delete_station(self, station_id: str) -> bool:
        with self._session() as db:
            db.query(SubstationRecord).filter(
                SubstationRecord.station_id == station_id
            ).delete(synchronize_session=False)
            deleted = (
                db.query(StationRecord)
                .filter(StationRecord.id == station_id)
                .delete(synchronize_session=False)
            )

        return deleted > 0

    async def load_operations(self) -> List[Operation]:
        with self._session() as db:
            return [
                Operation(
                    id=record.id,
                    name=record.name,
                    type=record.type or "",
                    semi_output_code=record.semi_output_code or "",
                    required_skills=frozenset(record.skills or []),
                )
                for record in db.query(OperationRecord).all()
            ]

    async def load_skills(self) -> List[Skill]:
        with self._session() as db:
            return [
                Skill(id=record.id, name=record.name)
                for record in db.query(SkillRecord).order_by(SkillRecord.name).all()
            ]

    async def load_workers(self) -> List[Worker]:
        with self._session() as db:
            return [
                Worker(
                    id=record.id,
                    name=record.name,
                    skills=frozenset(record.skills or []),
                    status=record.status,
                    current_station_id=record.current_station_id,
                )
                for record in db.query(WorkerRecord).order_by(WorkerRecord.name).all()
            ]

    async def create_skill(self, name: str) -> Skill:
        skill_id = f"skill-{uuid.uuid4().hex[:12]}"

        with self._session() as db:
            db.add(SkillRecord(id=skill_id, name=name))

        logger.info(f"Created skill {skill_id}")
        return Skill(id=skill_id, name=name)
