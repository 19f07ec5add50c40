import enum


class StationStatus(enum.StrEnum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


class TechnicalStatus(enum.StrEnum):
    ACTIVE = "active"
    PASSIVE = "passive"
    MAINTENANCE = "maintenance"

    @classmethod
    def for_station_status(cls, status: StationStatus) -> "TechnicalStatus":
        """Initial technical status of a substation created under a station."""
        return _INITIAL_TECHNICAL_STATUS.get(StationStatus(status), cls.ACTIVE)


_INITIAL_TECHNICAL_STATUS = {
    StationStatus.ACTIVE: TechnicalStatus.ACTIVE,
    StationStatus.MAINTENANCE: TechnicalStatus.MAINTENANCE,
    StationStatus.INACTIVE: TechnicalStatus.PASSIVE,
}
