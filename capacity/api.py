import logging
import sys
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from capacity.catalog import Catalog
from capacity.constants import LOG_LEVEL, MAX_INITIAL_SUBSTATIONS
from capacity.entities import Station, StationDraft
from capacity.enums import StationStatus, TechnicalStatus
from capacity.errors import (
    CapacityError,
    InvariantViolation,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from capacity.repository import SqlStationRepository
from capacity.service import StationService
from capacity.store import StationStore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    InvariantViolation: 409,
    PersistenceError: 503,
}


class SubstationPayload(BaseModel):
    code: str
    technical_status: TechnicalStatus = TechnicalStatus.ACTIVE


class StationPayload(BaseModel):
    id: str
    name: str
    description: str = ""
    location: str = ""
    status: StationStatus = StationStatus.ACTIVE
    operation_ids: List[str]
    station_specific_skills: List[str] = []
    substations: List[SubstationPayload]


class StationDraftPayload(BaseModel):
    name: str
    description: str = ""
    location: str = ""
    status: StationStatus = StationStatus.ACTIVE
    operation_ids: List[str]
    station_specific_skills: List[str] = []

    def to_draft(self) -> StationDraft:
        return StationDraft(
            name=self.name,
            description=self.description,
            location=self.location,
            status=self.status,
            operation_ids=list(self.operation_ids),
            station_specific_skills=list(self.station_specific_skills),
        )


class StationCreatePayload(StationDraftPayload):
    substation_count: int = Field(1, ge=1, le=MAX_INITIAL_SUBSTATIONS)


class DuplicatePayload(BaseModel):
    name: Optional[str] = None


class SubstationAddPayload(BaseModel):
    count: int = Field(1, ge=1)


class TechnicalStatusPayload(BaseModel):
    technical_status: TechnicalStatus


class SkillCreatePayload(BaseModel):
    name: str


class SkillResponse(BaseModel):
    id: str
    name: str


class SubstationResponse(BaseModel):
    code: str
    technical_status: str


class SubstationListItem(SubstationResponse):
    station_id: str


class ReloadResponse(BaseModel):
    stations: int


class StationResponse(BaseModel):
    id: str
    name: str
    description: str
    location: str
    status: str
    operation_ids: List[str]
    station_specific_skills: List[str]
    substations: List[SubstationResponse]
    effective_skills: List[str]


class WorkerResponse(BaseModel):
    id: str
    name: str
    skills: List[str]
    status: str
    current_station_id: Optional[str] = None


class StationDetailResponse(BaseModel):
    station: StationResponse
    inherited_skills: List[SkillResponse]
    custom_skills: List[SkillResponse]
    required_skills: List[SkillResponse]
    compatible_workers: List[WorkerResponse]


class CompatibleWorkersResponse(BaseModel):
    station_id: str
    station_name: str
    required_skills: List[SkillResponse]
    compatible_workers: List[WorkerResponse]


def get_service(request: Request) -> StationService:
    return request.app.state.service


def create_app(repository: Optional[SqlStationRepository] = None) -> FastAPI:
    """
    Build the HTTP surface over one station store.

    The store and catalog live on ``app.state``; the repository serves both as
    the station backend and the catalog backend.
    """
    repository = repository or SqlStationRepository()
    service = StationService(StationStore(repository, Catalog()), repository)

    app = FastAPI(
        title="Station Capacity API",
        description="API for stations, substations and worker compatibility",
        version="1.0.0",
    )
    app.state.service = service

    @app.on_event("startup")
    async def startup_event():
        try:
            await service.load()
        except PersistenceError as e:
            logger.error(f"Starting without station data, changes are refused until reload: {e}")

    @app.exception_handler(CapacityError)
    async def capacity_error_handler(request: Request, exc: CapacityError):
        status_code = next(
            (code for error, code in ERROR_STATUS_CODES.items() if isinstance(exc, error)),
            500,
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/")
    async def root():
        return {"status": "healthy"}

    @app.post("/reload", response_model=ReloadResponse)
    async def reload(service: StationService = Depends(get_service)) -> ReloadResponse:
        await service.load()
        return ReloadResponse(stations=len(service.store.stations))

    @app.get("/stations", response_model=List[StationResponse])
    async def list_stations(
        search: Optional[str] = None,
        status: Optional[List[StationStatus]] = Query(None),
        skill: Optional[List[str]] = Query(None),
        operation: Optional[List[str]] = Query(None),
        sort: Optional[str] = None,
        descending: bool = False,
        service: StationService = Depends(get_service),
    ) -> List[StationResponse]:
        stations = service.list_stations(
            search=search,
            statuses={str(s) for s in status} if status else None,
            skills=skill,
            operations=operation,
            sort=sort,
            descending=descending,
        )
        return [StationResponse(**station) for station in stations]

    @app.post("/stations", response_model=StationResponse, status_code=201)
    async def create_station(
        payload: StationCreatePayload, service: StationService = Depends(get_service)
    ) -> StationResponse:
        station = await service.create_station(payload.to_draft(), payload.substation_count)
        return StationResponse(**station)

    @app.put("/stations", response_model=List[StationResponse])
    async def save_stations(
        payload: List[StationPayload], service: StationService = Depends(get_service)
    ) -> List[StationResponse]:
        stations = [Station.from_dict(item.model_dump(mode="json")) for item in payload]
        return [StationResponse(**station) for station in await service.save_stations(stations)]

    @app.get("/stations/{station_id}", response_model=StationDetailResponse)
    async def get_station(
        station_id: str, service: StationService = Depends(get_service)
    ) -> StationDetailResponse:
        return StationDetailResponse(**service.get_station_detail(station_id))

    @app.patch("/stations/{station_id}", response_model=StationResponse)
    async def update_station(
        station_id: str,
        payload: StationDraftPayload,
        service: StationService = Depends(get_service),
    ) -> StationResponse:
        return StationResponse(**await service.update_station(station_id, payload.to_draft()))

    @app.delete("/stations/{station_id}", status_code=204)
    async def delete_station(
        station_id: str, service: StationService = Depends(get_service)
    ) -> Response:
        await service.delete_station(station_id)
        return Response(status_code=204)

    @app.post("/stations/{station_id}/duplicate", response_model=StationResponse, status_code=201)
    async def duplicate_station(
        station_id: str,
        payload: Optional[DuplicatePayload] = None,
        service: StationService = Depends(get_service),
    ) -> StationResponse:
        name = payload.name if payload else None
        return StationResponse(**await service.duplicate_station(station_id, name))

    @app.post("/stations/{station_id}/toggle-status", response_model=StationResponse)
    async def toggle_station_status(
        station_id: str, service: StationService = Depends(get_service)
    ) -> StationResponse:
        return StationResponse(**await service.toggle_station_status(station_id))

    @app.get("/stations/{station_id}/workers", response_model=CompatibleWorkersResponse)
    async def station_workers(
        station_id: str, service: StationService = Depends(get_service)
    ) -> CompatibleWorkersResponse:
        return CompatibleWorkersResponse(**service.compatible_workers(station_id))

    @app.post("/stations/{station_id}/substations", response_model=StationResponse)
    async def add_substations(
        station_id: str,
        payload: SubstationAddPayload,
        service: StationService = Depends(get_service),
    ) -> StationResponse:
        return StationResponse(**await service.add_substations(station_id, payload.count))

    @app.delete("/stations/{station_id}/substations/{code}", response_model=StationResponse)
    async def delete_substation(
        station_id: str, code: str, service: StationService = Depends(get_service)
    ) -> StationResponse:
        return StationResponse(**await service.delete_substation(station_id, code))

    @app.post("/stations/{station_id}/substations/{code}/toggle", response_model=StationResponse)
    async def toggle_substation(
        station_id: str, code: str, service: StationService = Depends(get_service)
    ) -> StationResponse:
        return StationResponse(**await service.toggle_substation_status(station_id, code))

    @app.get("/substations", response_model=List[SubstationListItem])
    async def list_substations(
        station_id: Optional[str] = None, service: StationService = Depends(get_service)
    ) -> List[SubstationListItem]:
        return [SubstationListItem(**item) for item in service.list_substations(station_id)]

    @app.put("/substations/{code}/technical-status", response_model=StationResponse)
    async def update_technical_status(
        code: str,
        payload: TechnicalStatusPayload,
        service: StationService = Depends(get_service),
    ) -> StationResponse:
        station = await service.update_substation_technical_status(
            code, str(payload.technical_status)
        )
        return StationResponse(**station)

    @app.post("/skills", response_model=SkillResponse, status_code=201)
    async def create_skill(
        payload: SkillCreatePayload, service: StationService = Depends(get_service)
    ) -> SkillResponse:
        return SkillResponse(**await service.create_skill(payload.name))

    return app


app = create_app()
