"""
JMA forecast JSON -> normalized forecast views.

forecast/<code>.json is a two-element list [short_term, weekly]. Each element
holds timeSeries entries of {timeDefines, areas}; area records carry no type
tag, so they are classified once on ingestion (weather > temperature >
precipitation) and everything downstream dispatches on `kind` only.

Per-field arrays are index-aligned with timeDefines. Ingestion pads/truncates
them to that length and maps "" to None, so every timestamp yields a row.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .errors import UpstreamShapeIncomplete
from .schemas import (
    AreaPops,
    AreaRecord,
    AreaTemps,
    AreaWeather,
    ForecastBlock,
    Overview,
    PopDay,
    PopRow,
    PrecipitationRecord,
    ReferenceNormal,
    ResolvedLocation,
    ShortTermForecast,
    TempDay,
    TemperatureRecord,
    TimeSeries,
    WeatherRecord,
    WeatherRow,
    WeeklyDay,
    WeeklyForecast,
    WeeklyTempDay,
)
from .utils import blank_to_none, logger, parse_jma_datetime
from .weather_codes import translate

WEATHER_KEYS = ("weathers", "weatherCodes", "winds", "waves")
TEMPERATURE_KEYS = ("temps", "tempsMin", "tempsMax")
PRECIPITATION_KEYS = ("pops",)

# short-term (element 0)
ST_WEATHER, ST_POPS, ST_TEMPS = 0, 1, 2
# weekly (element 1)
WK_WEATHER, WK_TEMPS = 0, 1


# ---------- classification ----------
def _has_any(raw: Dict[str, Any], keys) -> bool:
    return any(raw.get(k) is not None for k in keys)


def classify(raw: Dict[str, Any]) -> Optional[str]:
    """
    Precedence weather > temperature > precipitation: weather records also
    carry "pops" (weekly) and must not be taken for precipitation.
    """
    if not isinstance(raw, dict):
        return None
    if _has_any(raw, WEATHER_KEYS):
        return "weather"
    if _has_any(raw, TEMPERATURE_KEYS):
        return "temperature"
    if _has_any(raw, PRECIPITATION_KEYS):
        return "precipitation"
    return None


def _aligned(raw: Dict[str, Any], key: str, n: int) -> List[Optional[str]]:
    values = raw.get(key)
    if not isinstance(values, list):
        values = []
    out = [blank_to_none(v) for v in values[:n]]
    out.extend([None] * (n - len(out)))
    return out


def to_area_record(raw: Dict[str, Any], n: int) -> Optional[AreaRecord]:
    kind = classify(raw)
    if kind is None:
        return None
    area = raw.get("area") if isinstance(raw.get("area"), dict) else {}
    base = {
        "area_name": blank_to_none(area.get("name")),
        "area_code": blank_to_none(area.get("code")),
    }
    if kind == "weather":
        return WeatherRecord(
            **base,
            weathers=_aligned(raw, "weathers", n),
            weather_codes=_aligned(raw, "weatherCodes", n),
            winds=_aligned(raw, "winds", n),
            waves=_aligned(raw, "waves", n),
            pops=_aligned(raw, "pops", n),
            reliabilities=_aligned(raw, "reliabilities", n),
        )
    if kind == "temperature":
        return TemperatureRecord(
            **base,
            temps=_aligned(raw, "temps", n),
            temps_min=_aligned(raw, "tempsMin", n),
            temps_min_upper=_aligned(raw, "tempsMinUpper", n),
            temps_min_lower=_aligned(raw, "tempsMinLower", n),
            temps_max=_aligned(raw, "tempsMax", n),
            temps_max_upper=_aligned(raw, "tempsMaxUpper", n),
            temps_max_lower=_aligned(raw, "tempsMaxLower", n),
        )
    return PrecipitationRecord(**base, pops=_aligned(raw, "pops", n))


# ---------- ingestion ----------
def _list(value: Any) -> List[Any]:
    # a non-list where JMA puts a list is treated as absent
    return value if isinstance(value, list) else []


def parse_time_series(raw: Dict[str, Any]) -> TimeSeries:
    raw = raw if isinstance(raw, dict) else {}
    defines = _list(raw.get("timeDefines"))
    times = [parse_jma_datetime(t) for t in defines]
    areas: List[AreaRecord] = []
    for a in _list(raw.get("areas")):
        rec = to_area_record(a, len(times))
        if rec is None:
            logger.debug("area_record_unclassified", extra={"keys": sorted(a) if isinstance(a, dict) else None})
            continue
        areas.append(rec)
    return TimeSeries(time_defines=times, areas=areas)


def _reference_rows(raw: Any) -> List[ReferenceNormal]:
    if not isinstance(raw, dict):
        return []
    rows: List[ReferenceNormal] = []
    for a in _list(raw.get("areas")):
        if not isinstance(a, dict):
            continue
        area = a.get("area") if isinstance(a.get("area"), dict) else {}
        rows.append(ReferenceNormal(
            area_name=blank_to_none(area.get("name")),
            area_code=blank_to_none(area.get("code")),
            min=blank_to_none(a.get("min")),
            max=blank_to_none(a.get("max")),
        ))
    return rows


def parse_forecast_block(raw: Dict[str, Any]) -> ForecastBlock:
    return ForecastBlock(
        publishing_office=blank_to_none(raw.get("publishingOffice")),
        report_datetime=parse_jma_datetime(raw.get("reportDatetime")),
        time_series=[parse_time_series(ts) for ts in _list(raw.get("timeSeries"))],
        temp_average=_reference_rows(raw.get("tempAverage")),
        precip_average=_reference_rows(raw.get("precipAverage")),
    )


def short_term_block(payload: Any) -> ForecastBlock:
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
        raise UpstreamShapeIncomplete("短期予報")
    return parse_forecast_block(payload[0])


def weekly_block(payload: Any) -> ForecastBlock:
    if not isinstance(payload, list) or len(payload) < 2 or not isinstance(payload[1], dict):
        raise UpstreamShapeIncomplete("週間予報")
    return parse_forecast_block(payload[1])


def parse_overview(raw: Any) -> Overview:
    if not isinstance(raw, dict):
        raise UpstreamShapeIncomplete("天気概況")
    return Overview(
        publishing_office=blank_to_none(raw.get("publishingOffice")),
        report_datetime=parse_jma_datetime(raw.get("reportDatetime")),
        target_area=blank_to_none(raw.get("targetArea")),
        headline_text=blank_to_none(raw.get("headlineText")),
        text=blank_to_none(raw.get("text")),
    )


# ---------- scoping ----------
def filter_areas(series: TimeSeries, location: ResolvedLocation) -> List[AreaRecord]:
    """
    Municipality queries keep only the record for the resolved class10 area.
    If no record carries that code (temperature series are keyed by
    observation station) the full list is kept, as for prefecture queries.
    """
    if not location.is_city_search or not location.area_code:
        return list(series.areas)
    matched = [a for a in series.areas if a.area_code == location.area_code]
    return matched or list(series.areas)


def _series(block: ForecastBlock, i: int) -> Optional[TimeSeries]:
    return block.time_series[i] if len(block.time_series) > i else None


# ---------- short-term ----------
def pop_window(t: Optional[datetime]) -> str:
    """6-hour label from the local hour: 9 -> "9-15時", 21 -> "21-3時"."""
    if t is None:
        return "時間不明"
    return f"{t.hour}-{(t.hour + 6) % 24}時"


def _day(t: Optional[datetime]) -> Optional[date]:
    return t.date() if t is not None else None


def _weather_rows(series: TimeSeries, rec: WeatherRecord) -> List[WeatherRow]:
    return [
        WeatherRow(
            time=t,
            weather=rec.weathers[i],
            weather_code=rec.weather_codes[i],
            weather_code_text=translate(rec.weather_codes[i]),
            wind=rec.winds[i],
            wave=rec.waves[i],
        )
        for i, t in enumerate(series.time_defines)
    ]


def _pop_days(series: TimeSeries, pops: List[Optional[str]]) -> List[PopDay]:
    days: List[PopDay] = []
    for i, t in enumerate(series.time_defines):
        d = _day(t)
        if not days or days[-1].day != d:
            days.append(PopDay(day=d))
        days[-1].rows.append(PopRow(window=pop_window(t), pop=pops[i]))
    return days


def _temp_days(series: TimeSeries, temps: List[Optional[str]]) -> List[TempDay]:
    days: List[TempDay] = []
    for i, t in enumerate(series.time_defines):
        d = _day(t)
        if not days or days[-1].day != d:
            days.append(TempDay(day=d))
        # 00:00 carries the morning low, any other hour the daytime high
        if t is not None and t.hour == 0:
            days[-1].low = temps[i]
        else:
            days[-1].high = temps[i]
    return days


def normalize_short_term(block: ForecastBlock, location: ResolvedLocation) -> ShortTermForecast:
    out = ShortTermForecast(
        publishing_office=block.publishing_office,
        report_datetime=block.report_datetime,
    )

    series = _series(block, ST_WEATHER)
    if series is not None:
        for rec in filter_areas(series, location):
            if rec.kind == "weather":
                out.weather.append(AreaWeather(
                    area_name=rec.area_name,
                    area_code=rec.area_code,
                    rows=_weather_rows(series, rec),
                ))

    series = _series(block, ST_POPS)
    if series is not None:
        for rec in filter_areas(series, location):
            if rec.kind == "precipitation":
                out.pops.append(AreaPops(
                    area_name=rec.area_name,
                    area_code=rec.area_code,
                    days=_pop_days(series, rec.pops),
                ))

    series = _series(block, ST_TEMPS)
    if series is not None:
        for rec in filter_areas(series, location):
            if rec.kind == "temperature":
                out.temps.append(AreaTemps(
                    area_name=rec.area_name,
                    area_code=rec.area_code,
                    days=_temp_days(series, rec.temps),
                ))

    return out


# ---------- weekly ----------
def normalize_weekly(block: ForecastBlock, location: ResolvedLocation) -> WeeklyForecast:
    """Weekly data is pre-aggregated per region: only the first area of each series is used."""
    out = WeeklyForecast(
        publishing_office=block.publishing_office,
        report_datetime=block.report_datetime,
        temp_average=block.temp_average,
        precip_average=block.precip_average,
    )

    series = _series(block, WK_WEATHER)
    if series is not None:
        rec = next((r for r in filter_areas(series, location) if r.kind == "weather"), None)
        if rec is not None:
            out.area_name = rec.area_name
            out.days = [
                WeeklyDay(
                    time=t,
                    weather_code=rec.weather_codes[i],
                    weather_text=translate(rec.weather_codes[i]),
                    pop=rec.pops[i],
                    reliability=rec.reliabilities[i],
                )
                for i, t in enumerate(series.time_defines)
            ]

    series = _series(block, WK_TEMPS)
    if series is not None:
        rec = next((r for r in filter_areas(series, location) if r.kind == "temperature"), None)
        if rec is not None:
            out.temp_area_name = rec.area_name
            out.temps = [
                WeeklyTempDay(
                    time=t,
                    min=rec.temps_min[i],
                    min_lower=rec.temps_min_lower[i],
                    min_upper=rec.temps_min_upper[i],
                    max=rec.temps_max[i],
                    max_lower=rec.temps_max_lower[i],
                    max_upper=rec.temps_max_upper[i],
                )
                for i, t in enumerate(series.time_defines)
            ]

    return out
