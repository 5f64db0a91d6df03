"""
MCPツールハンドラのテスト
"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jma_weather_mcp import server
from jma_weather_mcp.area_index import AreaIndexLoad
from jma_weather_mcp.errors import DataUnavailable, UpstreamFetchFailed
from jma_weather_mcp.resolver import LocationResolver


@pytest.fixture
def client(overview_raw, forecast_payload):
    c = MagicMock()
    c.get_overview = AsyncMock(return_value=overview_raw)
    c.get_forecast = AsyncMock(return_value=forecast_payload)
    return c


class TestToolsCatalog:
    @pytest.mark.asyncio
    async def test_tool_names(self):
        tools = await server.handle_list_tools()
        names = [t.name for t in tools]
        assert names == [
            "get-japan-weather",
            "get-japan-forecast",
            "get-japan-weekly-forecast",
            "resolve-japan-location",
        ]
        assert set(names) == set(server.TOOLS)
        for t in tools:
            assert t.inputSchema["required"] == ["location"]


class TestRunTool:
    @pytest.mark.asyncio
    async def test_overview(self, client, resolver):
        text = await server.run_tool("get-japan-weather", {"location": "東京都"}, client, resolver)
        client.get_overview.assert_awaited_once_with("130000")
        assert "東京都の天気概況:" in text
        assert "【見出し】\n特になし" in text

    @pytest.mark.asyncio
    async def test_short_term_city(self, client, resolver):
        text = await server.run_tool("get-japan-forecast", {"location": "東京都府中市"}, client, resolver)
        client.get_forecast.assert_awaited_once_with("130000")
        assert text.startswith("府中市 (東京都)の天気予報:")
        assert "伊豆諸島北部" not in text

    @pytest.mark.asyncio
    async def test_weekly(self, client, resolver):
        text = await server.run_tool("get-japan-weekly-forecast", {"location": "東京都"}, client, resolver)
        assert "【東京地方の天気】" in text
        assert "【平年値 (気温)】" in text

    @pytest.mark.asyncio
    async def test_weekly_missing_only_fails_weekly(self, client, resolver, short_term_raw):
        """週間予報が欠けていても短期予報は返せる"""
        client.get_forecast.return_value = [short_term_raw]

        weekly = await server.run_tool("get-japan-weekly-forecast", {"location": "東京都"}, client, resolver)
        short = await server.run_tool("get-japan-forecast", {"location": "東京都"}, client, resolver)

        assert weekly == "気象庁のデータに週間予報が含まれていませんでした。"
        assert "【天気】\n■ 東京地方" in short

    @pytest.mark.asyncio
    async def test_malformed_time_series_returns_text(self, client, resolver, short_term_raw, weekly_raw):
        """timeSeriesが配列でなくても例外ではなく文章で返す"""
        short_term_raw["timeSeries"] = 5
        weekly_raw["timeSeries"] = 5
        client.get_forecast.return_value = [short_term_raw, weekly_raw]

        short = await server.run_tool("get-japan-forecast", {"location": "東京都"}, client, resolver)
        weekly = await server.run_tool("get-japan-weekly-forecast", {"location": "東京都"}, client, resolver)

        assert "【天気】\nデータなし" in short
        assert "【データなしの天気】\nデータなし" in weekly

    @pytest.mark.asyncio
    async def test_resolve_location(self, client, resolver):
        text = await server.run_tool("resolve-japan-location", {"location": "広島県府中市"}, client, resolver)
        data = json.loads(text)
        assert data["region_code"] == "340000"
        assert data["area_code"] == "340010"
        assert data["city_code"] == "3420800"
        assert data["is_city_search"] is True
        client.get_forecast.assert_not_called()

    @pytest.mark.asyncio
    async def test_location_not_found(self, client, resolver):
        text = await server.run_tool("get-japan-forecast", {"location": "ニューヨーク"}, client, resolver)
        assert "「ニューヨーク」に該当する地域が見つかりません" in text
        client.get_forecast.assert_not_called()

    @pytest.mark.asyncio
    async def test_data_unavailable(self, client):
        broken = LocationResolver(AreaIndexLoad(index=None, error=DataUnavailable(["/nowhere/area.json"])))
        text = await server.run_tool("get-japan-weather", {"location": "東京都"}, client, broken)
        assert "/nowhere/area.json" in text
        client.get_overview.assert_not_called()

    @pytest.mark.asyncio
    async def test_upstream_failure(self, client, resolver):
        client.get_overview.side_effect = UpstreamFetchFailed("https://example.invalid", "HTTP 500")
        text = await server.run_tool("get-japan-weather", {"location": "東京都"}, client, resolver)
        assert text == "気象庁からの天気データの取得に失敗しました。しばらくしてから再度お試しください。"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [{}, None, {"place": "東京都"}])
    async def test_bad_arguments(self, client, resolver, arguments):
        text = await server.run_tool("get-japan-weather", arguments, client, resolver)
        assert text.startswith("location")
        client.get_overview.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_tool(self, client, resolver):
        with pytest.raises(ValueError):
            await server.run_tool("get-moon-phase", {"location": "東京都"}, client, resolver)


class TestHandleCallTool:
    @pytest.mark.asyncio
    async def test_client_closed_and_text_truncated(self, monkeypatch):
        instance = MagicMock()
        instance.close = AsyncMock()
        monkeypatch.setattr(server.settings, "max_response_bytes", 64)

        with patch.object(server, "JMAClient", return_value=instance), \
                patch.object(server, "run_tool", AsyncMock(return_value="天気" * 100)):
            out = await server.handle_call_tool("get-japan-weather", {"location": "東京都"})

        assert len(out) == 1
        assert out[0].type == "text"
        assert out[0].text.endswith("...<truncated>")
        assert len(out[0].text.encode("utf-8")) < 100
        instance.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_client_closed_on_error(self):
        instance = MagicMock()
        instance.close = AsyncMock()

        with patch.object(server, "JMAClient", return_value=instance):
            with pytest.raises(ValueError):
                await server.handle_call_tool("get-moon-phase", {"location": "東京都"})

        instance.close.assert_awaited_once()
