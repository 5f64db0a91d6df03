from typing import Any, Dict, List

import anyio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from pydantic import ValidationError

from jma_weather_mcp.area_index import default_area_paths, load_area_index
from jma_weather_mcp.client import JMAClient
from jma_weather_mcp.config import load_settings
from jma_weather_mcp.errors import WeatherToolError
from jma_weather_mcp.normalizer import (
    normalize_short_term,
    normalize_weekly,
    parse_overview,
    short_term_block,
    weekly_block,
)
from jma_weather_mcp.render import render_location, render_overview, render_short_term, render_weekly
from jma_weather_mcp.resolver import LocationResolver
from jma_weather_mcp.schemas import LocationInput
from jma_weather_mcp.utils import Timer, logger, new_request_id, safe_truncate_bytes

server = Server("jma-weather-mcp")

# area.json is read exactly once; a failure is kept and reported per request
settings = load_settings()
area_load = load_area_index(default_area_paths(settings))
resolver = LocationResolver(area_load)

_LOCATION_SCHEMA = {
    "type": "object",
    "properties": {
        "location": {
            "type": "string",
            "description": "都道府県名または市区町村名 (例: '東京都', '大阪', '札幌市', '広島県府中市')",
        },
    },
    "required": ["location"],
}


# ---------- tools catalog ----------
@server.list_tools()
async def handle_list_tools() -> List[types.Tool]:
    return [
        types.Tool(
            name="get-japan-weather",
            description="""気象庁の天気概況（見出し・詳細文）を取得する。

                使い方:
                - 都道府県名: location="東京都"
                - 市区町村名: location="札幌市"（その市区町村を含む府県の概況を返します）

                注意:
                - 天気概況は府県単位で発表されるため、市区町村を指定しても府県全体の概況になります。""",
            inputSchema=_LOCATION_SCHEMA,
        ),
        types.Tool(
            name="get-japan-forecast",
            description="""気象庁の短期予報（今日〜明後日の天気・風・波、6時間ごとの降水確率、最低/最高気温）を取得する。

                使い方:
                - 都道府県名: location="大阪府"（府県内の全地域を返します）
                - 市区町村名: location="府中市"
                - 同名の市区町村がある場合は都道府県名を前に付ける: location="広島県府中市"

                注意:
                - 都道府県名を付けない市区町村名は、地域データの先頭で見つかったものが使われます。""",
            inputSchema=_LOCATION_SCHEMA,
        ),
        types.Tool(
            name="get-japan-weekly-forecast",
            description="""気象庁の週間予報（7日間の天気・降水確率・信頼度、最低/最高気温と予想の幅、平年値）を取得する。

                使い方:
                - location="東京都" / location="福岡市" / location="東京都府中市"

                注意:
                - 週間予報は府県単位で集約されているため、先頭の地域のみを表示します。""",
            inputSchema=_LOCATION_SCHEMA,
        ),
        types.Tool(
            name="resolve-japan-location",
            description="""地域名を気象庁の地域コード（府県予報区コード・一次細分区域コード・市区町村コード）に変換する。

                例:
                - location="東京都" -> region_code="130000"
                - location="広島県府中市" -> region_code="340000", area_code="340010"
                - 見つからない場合はエラーメッセージを返します。""",
            inputSchema=_LOCATION_SCHEMA,
        ),
    ]


# ---------- reports ----------
async def overview_report(location: str, client: JMAClient, resolver: LocationResolver) -> str:
    loc = resolver.resolve(location)
    raw = await client.get_overview(loc.region_code)
    return render_overview(parse_overview(raw), loc)


async def short_term_report(location: str, client: JMAClient, resolver: LocationResolver) -> str:
    loc = resolver.resolve(location)
    raw = await client.get_forecast(loc.region_code)
    return render_short_term(normalize_short_term(short_term_block(raw), loc), loc)


async def weekly_report(location: str, client: JMAClient, resolver: LocationResolver) -> str:
    loc = resolver.resolve(location)
    raw = await client.get_forecast(loc.region_code)
    return render_weekly(normalize_weekly(weekly_block(raw), loc), loc)


async def location_report(location: str, client: JMAClient, resolver: LocationResolver) -> str:
    return render_location(resolver.resolve(location))


TOOLS = {
    "get-japan-weather": overview_report,
    "get-japan-forecast": short_term_report,
    "get-japan-weekly-forecast": weekly_report,
    "resolve-japan-location": location_report,
}


# ---------- tools handler ----------
async def run_tool(name: str, arguments: Dict[str, Any], client: JMAClient, resolver: LocationResolver) -> str:
    """
    Every WeatherToolError becomes a normal text answer; only an unknown tool
    name is raised back to the MCP layer.
    """
    handler = TOOLS.get(name)
    if handler is None:
        raise ValueError(f"Unknown tool: {name}")
    try:
        p = LocationInput.model_validate(arguments or {})
    except ValidationError:
        return "location（地域名の文字列）を指定してください。例: location=\"東京都\""
    try:
        return await handler(p.location, client, resolver)
    except WeatherToolError as e:
        logger.info("tool_error", extra={"tool": name, "error_type": type(e).__name__, "error": str(e)})
        return e.user_message()


@server.call_tool()
async def handle_call_tool(name: str, arguments: dict) -> List[types.TextContent]:
    rid = new_request_id()
    client = JMAClient(settings)

    try:
        with Timer() as t:
            text = await run_tool(name, arguments, client, resolver)

        if len(text.encode("utf-8")) > settings.max_response_bytes:
            text = safe_truncate_bytes(text, settings.max_response_bytes // 2) + "\n...<truncated>"
        logger.info("tool_done", extra={"rid": rid, "tool": name, "elapsed_ms": t.elapsed_ms})

        return [types.TextContent(type="text", text=text)]

    finally:
        await client.close()


async def _main() -> None:
    async with stdio_server() as (read, write):
        caps = server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={}
        )

        init_opts = InitializationOptions(
            server_name="jma-weather-mcp",
            server_version="0.1.0",
            capabilities=caps
        )

        await server.run(read, write, init_opts)


def main() -> None:
    anyio.run(_main)


if __name__ == "__main__":
    main()
