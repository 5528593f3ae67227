"""
Orbit Feed Data Models

Immutable pydantic models shared by the server pipeline and the display
client. Attributes are snake_case; the JSON envelope served to clients uses
camelCase aliases, so always dump with ``by_alias=True``.
"""

from datetime import datetime
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OrbitRecord(BaseModel):
    """One tracked object's element set plus descriptive metadata"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    norad_id: int
    object_name: str
    object_type: Optional[str] = None
    country_code: Optional[str] = None
    inclination: Optional[float] = None
    launch_date: Optional[str] = None
    satrec: Any = Field(default=None, repr=False)


class OrbitSet(BaseModel):
    """Parsed element sets of one group, as fetched at ``fetched_at``"""
    model_config = ConfigDict(frozen=True)

    group: str
    fetched_at: datetime
    source: str
    records: Tuple[OrbitRecord, ...] = ()
    discarded: int = 0


class SatellitePosition(BaseModel):
    """Point-in-time geodetic state of one object"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    norad_id: int = Field(alias="noradId")
    lat: float
    lon: float
    altitude_km: float = Field(alias="altitudeKm")
    speed_kps: float = Field(alias="speedKps")
    object_name: str = Field(alias="objectName")
    object_type: Optional[str] = Field(default=None, alias="objectType")
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    inclination: Optional[float] = None
    launch_date: Optional[str] = Field(default=None, alias="launchDate")


class PositionSnapshot(BaseModel):
    """Ordered positions of a group computed at ``computed_at``"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    computed_at: datetime = Field(alias="computedAt")
    group: str
    fetched_at: datetime = Field(alias="fetchedAt")
    source: str
    total_orbits: int = Field(alias="totalOrbits")
    count: int
    satellites: Tuple[SatellitePosition, ...] = ()

    @model_validator(mode="after")
    def _count_matches_satellites(self) -> "PositionSnapshot":
        if self.count != len(self.satellites):
            raise ValueError(
                f"count {self.count} disagrees with {len(self.satellites)} satellites"
            )
        return self

    def to_json(self) -> dict:
        """JSON-ready envelope with camelCase keys"""
        return self.model_dump(mode="json", by_alias=True)
