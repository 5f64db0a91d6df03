from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =========================
# AREA HIERARCHY (area.json)
# =========================
AreaLevel = Literal["centers", "offices", "class10s", "class15s", "class20s"]
AREA_LEVELS: List[str] = ["centers", "offices", "class10s", "class15s", "class20s"]


class AreaEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str
    name: str
    english_name: Optional[str] = Field(default=None, alias="enName")
    kana: Optional[str] = None
    # centers/offices: the forecast office issuing for the area
    office_name: Optional[str] = Field(default=None, alias="officeName")
    parent: Optional[str] = None
    children: List[str] = Field(default_factory=list)


class ResolvedLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    region_code: str
    area_code: Optional[str] = None
    is_city_search: bool = False

    region_name: Optional[str] = None
    area_name: Optional[str] = None
    city_code: Optional[str] = None
    city_name: Optional[str] = None
    matched_strategy: Optional[str] = None  # "compound" / "city" / "prefecture"

    @property
    def display_name(self) -> str:
        if self.is_city_search and self.city_name:
            return f"{self.city_name} ({self.region_name})" if self.region_name else self.city_name
        return self.region_name or self.region_code


# =========================
# AREA RECORDS (tagged on ingestion)
# =========================
Value = Optional[str]


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    area_name: Optional[str] = None
    area_code: Optional[str] = None


class WeatherRecord(_RecordBase):
    kind: Literal["weather"] = "weather"
    weathers: List[Value] = Field(default_factory=list)
    weather_codes: List[Value] = Field(default_factory=list)
    winds: List[Value] = Field(default_factory=list)
    waves: List[Value] = Field(default_factory=list)
    pops: List[Value] = Field(default_factory=list)
    reliabilities: List[Value] = Field(default_factory=list)


class TemperatureRecord(_RecordBase):
    kind: Literal["temperature"] = "temperature"
    temps: List[Value] = Field(default_factory=list)
    temps_min: List[Value] = Field(default_factory=list)
    temps_min_upper: List[Value] = Field(default_factory=list)
    temps_min_lower: List[Value] = Field(default_factory=list)
    temps_max: List[Value] = Field(default_factory=list)
    temps_max_upper: List[Value] = Field(default_factory=list)
    temps_max_lower: List[Value] = Field(default_factory=list)


class PrecipitationRecord(_RecordBase):
    kind: Literal["precipitation"] = "precipitation"
    pops: List[Value] = Field(default_factory=list)


AreaRecord = Annotated[
    Union[WeatherRecord, TemperatureRecord, PrecipitationRecord],
    Field(discriminator="kind"),
]


class TimeSeries(BaseModel):
    time_defines: List[Optional[datetime]] = Field(default_factory=list)
    areas: List[AreaRecord] = Field(default_factory=list)


class ReferenceNormal(BaseModel):
    """One row of tempAverage / precipAverage, kept verbatim."""
    area_name: Optional[str] = None
    area_code: Optional[str] = None
    min: Value = None
    max: Value = None


class ForecastBlock(BaseModel):
    publishing_office: Optional[str] = None
    report_datetime: Optional[datetime] = None
    time_series: List[TimeSeries] = Field(default_factory=list)
    temp_average: List[ReferenceNormal] = Field(default_factory=list)
    precip_average: List[ReferenceNormal] = Field(default_factory=list)


class Overview(BaseModel):
    publishing_office: Optional[str] = None
    report_datetime: Optional[datetime] = None
    target_area: Optional[str] = None
    headline_text: Optional[str] = None
    text: Optional[str] = None


# =========================
# NORMALIZED VIEWS
# =========================
class WeatherRow(BaseModel):
    time: Optional[datetime] = None
    weather: Value = None
    weather_code: Value = None
    weather_code_text: str
    wind: Value = None
    wave: Value = None


class AreaWeather(BaseModel):
    area_name: Optional[str] = None
    area_code: Optional[str] = None
    rows: List[WeatherRow] = Field(default_factory=list)


class PopRow(BaseModel):
    window: str  # e.g. "9-15時"
    pop: Value = None


class PopDay(BaseModel):
    day: Optional[date] = None
    rows: List[PopRow] = Field(default_factory=list)


class AreaPops(BaseModel):
    area_name: Optional[str] = None
    area_code: Optional[str] = None
    days: List[PopDay] = Field(default_factory=list)


class TempDay(BaseModel):
    day: Optional[date] = None
    low: Value = None
    high: Value = None


class AreaTemps(BaseModel):
    area_name: Optional[str] = None
    area_code: Optional[str] = None
    days: List[TempDay] = Field(default_factory=list)


class ShortTermForecast(BaseModel):
    publishing_office: Optional[str] = None
    report_datetime: Optional[datetime] = None
    weather: List[AreaWeather] = Field(default_factory=list)
    pops: List[AreaPops] = Field(default_factory=list)
    temps: List[AreaTemps] = Field(default_factory=list)


class WeeklyDay(BaseModel):
    time: Optional[datetime] = None
    weather_code: Value = None
    weather_text: str
    pop: Value = None
    reliability: Value = None


class WeeklyTempDay(BaseModel):
    time: Optional[datetime] = None
    min: Value = None
    min_lower: Value = None
    min_upper: Value = None
    max: Value = None
    max_lower: Value = None
    max_upper: Value = None


class WeeklyForecast(BaseModel):
    publishing_office: Optional[str] = None
    report_datetime: Optional[datetime] = None
    area_name: Optional[str] = None
    days: List[WeeklyDay] = Field(default_factory=list)
    temp_area_name: Optional[str] = None
    temps: List[WeeklyTempDay] = Field(default_factory=list)
    temp_average: List[ReferenceNormal] = Field(default_factory=list)
    precip_average: List[ReferenceNormal] = Field(default_factory=list)


# =========================
# TOOL INPUT
# =========================
class LocationInput(BaseModel):
    location: str

    @field_validator("location", mode="before")
    @classmethod
    def _coerce(cls, v: Any):
        return "" if v is None else str(v)


def to_jsonable(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json")
