from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import declarative_base

from capacity.enums import StationStatus, TechnicalStatus

Base = declarative_base()


class StationRecord(Base):
    """Persisted station; substations live in their own table."""

    __tablename__ = "stations"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(
        String(20), nullable=False, default=StationStatus.ACTIVE, index=True
    )
    operation_ids = Column(JSON, nullable=False, default=list)
    station_specific_skills = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "location": self.location or "",
            "status": self.status,
            "operation_ids": list(self.operation_ids or []),
            "station_specific_skills": list(self.station_specific_skills or []),
        }


class SubstationRecord(Base):
    __tablename__ = "substations"

    code = Column(String(120), primary_key=True)
    station_id = Column(
        String(100),
        ForeignKey("stations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    technical_status = Column(
        String(20), nullable=False, default=TechnicalStatus.ACTIVE
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"code": self.code, "technical_status": self.technical_status}


# Catalog tables are owned by other parts of the system and only read here,
# except for skills, which can be created on demand.


class OperationRecord(Base):
    __tablename__ = "operations"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=True)
    semi_output_code = Column(String(20), nullable=True)
    skills = Column(JSON, nullable=False, default=list)


class SkillRecord(Base):
    __tablename__ = "skills"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class WorkerRecord(Base):
    __tablename__ = "workers"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    skills = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="available")
    current_station_id = Column(String(100), nullable=True)
