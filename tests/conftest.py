"""共通フィクスチャ"""
import copy

import pytest

from jma_weather_mcp.area_index import load_area_index_from_dict
from jma_weather_mcp.resolver import LocationResolver
from jma_weather_mcp.schemas import ResolvedLocation

AREA_RAW = {
    "centers": {
        "010300": {"name": "関東甲信地方", "children": ["130000"]},
        "010700": {"name": "中国地方（山口県を除く）", "children": ["340000"]},
    },
    "offices": {
        # 完全一致より前に「東京都」を含む名前を置く
        "139999": {"name": "新東京都", "parent": "010300"},
        "130000": {"name": "東京都", "enName": "Tokyo", "parent": "010300", "children": ["130010"]},
        "260000": {"name": "京都府", "parent": "010600", "children": ["260010"]},
        "340000": {"name": "広島県", "enName": "Hiroshima", "parent": "010700", "children": ["340010"]},
    },
    "class10s": {
        "130010": {"name": "東京地方", "parent": "130000"},
        "260010": {"name": "南部", "parent": "260000"},
        "340010": {"name": "南部", "parent": "340000"},
    },
    "class15s": {
        "130013": {"name": "多摩北部", "parent": "130010"},
        "260011": {"name": "京都・亀岡", "parent": "260010"},
        "340013": {"name": "福山・尾三", "parent": "340010"},
        "349999": {"name": "親のない地域", "parent": "999999"},
    },
    "class20s": {
        "1320600": {"name": "府中市", "parent": "130013"},
        "1320800": {"name": "調布市", "parent": "130013"},
        "2610000": {"name": "京都市", "parent": "260011"},
        "3420700": {"name": "福山市", "parent": "340013"},
        "3420800": {"name": "府中市", "parent": "340013"},
        # 親が辿れない: 検索対象外
        "3499900": {"name": "幻町", "parent": "349999"},
        "3499901": {"name": "迷子村", "parent": "000000"},
    },
}


@pytest.fixture
def area_raw():
    return copy.deepcopy(AREA_RAW)


@pytest.fixture
def area_load(area_raw):
    load = load_area_index_from_dict(area_raw)
    assert load.ok
    return load


@pytest.fixture
def resolver(area_load):
    return LocationResolver(area_load)


@pytest.fixture
def prefecture_location():
    return ResolvedLocation(region_code="130000", region_name="東京都", matched_strategy="prefecture")


@pytest.fixture
def city_location():
    return ResolvedLocation(
        region_code="130000",
        area_code="130010",
        is_city_search=True,
        region_name="東京都",
        area_name="東京地方",
        city_code="1320600",
        city_name="府中市",
        matched_strategy="compound",
    )


@pytest.fixture
def short_term_raw():
    """forecast/130000.json の要素0 (短期予報)"""
    return {
        "publishingOffice": "気象庁",
        "reportDatetime": "2024-01-15T11:00:00+09:00",
        "timeSeries": [
            {
                "timeDefines": [
                    "2024-01-15T11:00:00+09:00",
                    "2024-01-16T00:00:00+09:00",
                    "2024-01-17T00:00:00+09:00",
                ],
                "areas": [
                    {
                        "area": {"name": "東京地方", "code": "130010"},
                        "weatherCodes": ["100", "201", "300"],
                        "weathers": ["晴れ", "くもり　時々　晴れ", ""],
                        "winds": ["北の風", "北の風　後　南の風", "南の風"],
                    },
                    {
                        "area": {"name": "伊豆諸島北部", "code": "130020"},
                        "weatherCodes": ["200", "200"],
                        "weathers": ["くもり", "くもり"],
                        "winds": ["北東の風", "北東の風"],
                        "waves": ["２メートル", "２メートル"],
                    },
                ],
            },
            {
                "timeDefines": [
                    "2024-01-15T12:00:00+09:00",
                    "2024-01-15T18:00:00+09:00",
                    "2024-01-16T00:00:00+09:00",
                    "2024-01-16T06:00:00+09:00",
                ],
                "areas": [
                    {"area": {"name": "東京地方", "code": "130010"}, "pops": ["10", "20", "30", "40"]},
                    {"area": {"name": "伊豆諸島北部", "code": "130020"}, "pops": ["0", "", "10"]},
                ],
            },
            {
                "timeDefines": [
                    "2024-01-16T00:00:00+09:00",
                    "2024-01-16T09:00:00+09:00",
                ],
                "areas": [
                    {"area": {"name": "東京", "code": "44132"}, "temps": ["2", "11"]},
                ],
            },
        ],
    }


@pytest.fixture
def weekly_raw():
    """forecast/130000.json の要素1 (週間予報)"""
    return {
        "publishingOffice": "気象庁",
        "reportDatetime": "2024-01-15T11:00:00+09:00",
        "timeSeries": [
            {
                "timeDefines": [
                    "2024-01-16T00:00:00+09:00",
                    "2024-01-17T00:00:00+09:00",
                    "2024-01-18T00:00:00+09:00",
                ],
                "areas": [
                    {
                        "area": {"name": "東京地方", "code": "130010"},
                        "weatherCodes": ["101", "999", ""],
                        "pops": ["", "30", "70"],
                        "reliabilities": ["", "A", "C"],
                    },
                    {
                        "area": {"name": "伊豆諸島", "code": "130100"},
                        "weatherCodes": ["200", "200", "200"],
                    },
                ],
            },
            {
                "timeDefines": [
                    "2024-01-16T00:00:00+09:00",
                    "2024-01-17T00:00:00+09:00",
                    "2024-01-18T00:00:00+09:00",
                ],
                "areas": [
                    {
                        "area": {"name": "東京", "code": "44132"},
                        "tempsMin": ["", "3", "4"],
                        "tempsMinUpper": ["", "5", "6"],
                        "tempsMinLower": ["", "1", "2"],
                        "tempsMax": ["", "12", "13"],
                        "tempsMaxUpper": ["", "14", "15"],
                        "tempsMaxLower": ["", "10", "11"],
                    },
                ],
            },
        ],
        "tempAverage": {"areas": [{"area": {"name": "東京", "code": "44132"}, "min": "2.1", "max": "10.5"}]},
        "precipAverage": {"areas": [{"area": {"name": "東京", "code": "44132"}, "min": "8.0", "max": "20.0"}]},
    }


@pytest.fixture
def forecast_payload(short_term_raw, weekly_raw):
    return [short_term_raw, weekly_raw]


@pytest.fixture
def overview_raw():
    return {
        "publishingOffice": "気象庁",
        "reportDatetime": "2024-01-15T10:38:00+09:00",
        "targetArea": "東京都",
        "headlineText": "",
        "text": "日本付近は冬型の気圧配置となっています。",
    }
