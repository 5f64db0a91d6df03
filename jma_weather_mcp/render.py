"""Normalized forecast views -> report text. Pure formatting."""
import json
from datetime import date, datetime
from typing import List, Optional

from .schemas import (
    Overview,
    ReferenceNormal,
    ResolvedLocation,
    ShortTermForecast,
    WeeklyForecast,
    to_jsonable,
)
from .weather_codes import NO_DATA

WEEKDAYS_JA = "月火水木金土日"


def _v(value: Optional[str], unit: str = "") -> str:
    return f"{value}{unit}" if value is not None else NO_DATA


def fmt_datetime(dt: Optional[datetime]) -> str:
    if dt is None:
        return NO_DATA
    return f"{dt.year}年{dt.month}月{dt.day}日 {dt.hour:02d}:{dt.minute:02d}"


def fmt_day(d: Optional[date]) -> str:
    if d is None:
        return "日付不明"
    return f"{d.month}月{d.day}日({WEEKDAYS_JA[d.weekday()]})"


def _range(lower: Optional[str], upper: Optional[str]) -> str:
    if lower is None and upper is None:
        return ""
    return f" ({_v(lower)}〜{_v(upper)})"


def _header(title: str, office: Optional[str], reported: Optional[datetime]) -> List[str]:
    return [
        title,
        "",
        f"発表: {_v(office)}",
        f"発表日時: {fmt_datetime(reported)}",
        "",
    ]


def render_overview(ov: Overview, location: ResolvedLocation) -> str:
    lines = _header(
        f"{ov.target_area or location.display_name}の天気概況:",
        ov.publishing_office,
        ov.report_datetime,
    )
    lines += [
        "【見出し】",
        ov.headline_text or "特になし",
        "",
        "【詳細】",
        _v(ov.text),
    ]
    return "\n".join(lines)


def render_short_term(fc: ShortTermForecast, location: ResolvedLocation) -> str:
    lines = _header(
        f"{location.display_name}の天気予報:",
        fc.publishing_office,
        fc.report_datetime,
    )

    lines.append("【天気】")
    if not fc.weather:
        lines.append(NO_DATA)
    for area in fc.weather:
        lines.append(f"■ {_v(area.area_name)}")
        has_waves = any(r.wave is not None for r in area.rows)
        for r in area.rows:
            day = fmt_day(r.time.date() if r.time else None)
            lines.append(f"{day}: {r.weather or r.weather_code_text}")
            lines.append(f"  風: {_v(r.wind)}")
            if has_waves:
                lines.append(f"  波: {_v(r.wave)}")
    lines.append("")

    lines.append("【降水確率】")
    if not fc.pops:
        lines.append(NO_DATA)
    for area in fc.pops:
        lines.append(f"■ {_v(area.area_name)}")
        for d in area.days:
            lines.append(fmt_day(d.day))
            for row in d.rows:
                lines.append(f"  {row.window}: {_v(row.pop, '%')}")
    lines.append("")

    lines.append("【気温】")
    if not fc.temps:
        lines.append(NO_DATA)
    for area in fc.temps:
        lines.append(f"■ {_v(area.area_name)}")
        for d in area.days:
            lines.append(f"{fmt_day(d.day)}: 最低 {_v(d.low, '℃')} / 最高 {_v(d.high, '℃')}")

    return "\n".join(lines).rstrip()


def _temp_normal(r: ReferenceNormal) -> str:
    return f"{_v(r.area_name)}: 最低 {_v(r.min, '℃')} / 最高 {_v(r.max, '℃')}"


def _precip_normal(r: ReferenceNormal) -> str:
    return f"{_v(r.area_name)}: {_v(r.min, 'mm')}〜{_v(r.max, 'mm')}"


def render_weekly(fc: WeeklyForecast, location: ResolvedLocation) -> str:
    lines = _header(
        f"{location.display_name}の週間予報:",
        fc.publishing_office,
        fc.report_datetime,
    )

    lines.append(f"【{_v(fc.area_name)}の天気】")
    if not fc.days:
        lines.append(NO_DATA)
    for d in fc.days:
        day = fmt_day(d.time.date() if d.time else None)
        lines.append(
            f"{day}: {d.weather_text}  降水確率: {_v(d.pop, '%')}  信頼度: {_v(d.reliability)}"
        )

    lines.append("")
    lines.append(f"【{_v(fc.temp_area_name)}の気温】")
    if not fc.temps:
        lines.append(NO_DATA)
    for t in fc.temps:
        day = fmt_day(t.time.date() if t.time else None)
        lines.append(
            f"{day}: 最低 {_v(t.min, '℃')}{_range(t.min_lower, t.min_upper)}"
            f" / 最高 {_v(t.max, '℃')}{_range(t.max_lower, t.max_upper)}"
        )

    if fc.temp_average:
        lines += ["", "【平年値 (気温)】"] + [_temp_normal(r) for r in fc.temp_average]
    if fc.precip_average:
        lines += ["", "【平年値 (降水量の合計)】"] + [_precip_normal(r) for r in fc.precip_average]
    return "\n".join(lines)


def render_location(location: ResolvedLocation) -> str:
    """Resolved codes as a JSON object (non-ASCII kept readable)."""
    return json.dumps(to_jsonable(location), ensure_ascii=False)
