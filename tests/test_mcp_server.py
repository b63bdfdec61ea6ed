"""MCPサーバー (ツール / リソース) のテスト"""
# pylint: disable=protected-access,redefined-outer-name

import json

import pytest

from jreit_mcp.config import AppConfig, DataSourceConfig
from jreit_mcp.server import JReitMCPServer, TextContent, _stringify_params


def _payload(result):
    assert len(result) == 1
    assert isinstance(result[0], TextContent)
    return json.loads(result[0].text)


class TestJReitMCPServer:
    """JReitMCPServer のテストクラス"""

    @pytest.fixture
    def server(self, app_config):
        """同梱データを参照する JReitMCPServer"""
        return JReitMCPServer(app_config)

    def test_server_initialization(self, server):
        """サーバー初期化テスト"""
        assert server.server.name == "jreit-building-search-mcp"
        assert server.data_client.cache == {}

    def test_stringify_params(self):
        """数値引数は文字列化し、未知のキーは捨てる"""
        params = _stringify_params(
            {"q": "東京", "minCap": 4, "maxCap": 4.5, "minPrice": None, "sort": "x"}
        )
        assert params == {"q": "東京", "minCap": "4", "maxCap": "4.5"}

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1000000, "1000000"),
            (1234567, "1234567"),
            (1234.567, "1234.567"),
            (1e-05, "0.00001"),
            (1e16, "10000000000000000"),
        ],
    )
    def test_stringify_params_keeps_precision(self, value, expected):
        """指数表記・桁落ちなしで文字列化"""
        assert _stringify_params({"minPrice": value}) == {"minPrice": expected}

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        """未知のツール"""
        payload = _payload(await server.call_tool("delete_building", {}))
        assert payload["success"] is False
        assert payload["error"]["code"] == "BAD_REQUEST"


class TestSearchTool:
    """search_buildings ツールのテスト"""

    @pytest.fixture
    def server(self, app_config):
        """サーバー"""
        return JReitMCPServer(app_config)

    @pytest.mark.asyncio
    async def test_text_search(self, server):
        """建物名検索"""
        payload = _payload(await server.call_tool("search_buildings", {"q": "梅田"}))
        assert payload["success"] is True
        data = payload["data"]
        assert data["count"] == 1
        assert data["results"][0]["id"] == "bldg-0000000002"
        assert data["filters"] == {"q": "梅田"}

    @pytest.mark.asyncio
    async def test_numeric_arguments(self, server):
        """数値で渡された範囲条件"""
        payload = _payload(
            await server.call_tool("search_buildings", {"minCap": 4, "maxCap": 4.5})
        )
        ids = [r["id"] for r in payload["data"]["results"]]
        assert ids == ["bldg-0000000003", "bldg-0000000005"]

    @pytest.mark.asyncio
    async def test_large_integer_argument(self, server):
        """100万 (百万円) の整数はそのまま有効な下限"""
        payload = _payload(
            await server.call_tool("search_buildings", {"minPrice": 1000000})
        )
        assert payload["success"] is True
        assert payload["data"]["count"] == 0
        assert payload["data"]["filters"] == {"minPrice": "1000000"}

    @pytest.mark.asyncio
    async def test_precise_float_argument(self, server):
        """有効桁数の多い小数も丸めずに境界として使う"""
        payload = _payload(
            await server.call_tool("search_buildings", {"minPrice": 9100.0000001})
        )
        ids = [r["id"] for r in payload["data"]["results"]]
        assert ids == ["bldg-0000000001", "bldg-0000000004"]
        assert payload["data"]["filters"] == {"minPrice": "9100.0000001"}

    @pytest.mark.asyncio
    async def test_empty_search_returns_all(self, server):
        """条件なしは全件"""
        payload = _payload(await server.call_tool("search_buildings", {}))
        assert payload["data"]["count"] == 5

    @pytest.mark.asyncio
    async def test_validation_error(self, server):
        """検証エラーは全件まとめて返す"""
        payload = _payload(
            await server.call_tool(
                "search_buildings", {"minYield": "90", "maxYield": "80", "maxCap": "30"}
            )
        )
        assert payload["success"] is False
        assert payload["error"]["code"] == "VALIDATION_ERROR"
        assert payload["error"]["details"]["errors"] == [
            "Minimum yield cannot be greater than maximum yield",
            "Maximum cap rate cannot be greater than 20%",
        ]


class TestBuildingTools:
    """建物参照ツールのテスト"""

    @pytest.fixture
    def server(self, app_config):
        """サーバー"""
        return JReitMCPServer(app_config)

    @pytest.mark.asyncio
    async def test_list_buildings(self, server):
        """一覧 (サマリー)"""
        payload = _payload(await server.call_tool("list_buildings", {}))
        data = payload["data"]
        assert data["count"] == 5
        first = data["buildings"][0]
        assert first["name"] == "丸の内センタービル"
        assert first["evaluationAmount"] == 385
        assert first["type"] == "オフィス"

    @pytest.mark.asyncio
    async def test_list_buildings_sorted(self, server):
        """並び替え"""
        payload = _payload(
            await server.call_tool(
                "list_buildings", {"sort_by": "occupancy_rate", "descending": True}
            )
        )
        ids = [b["id"] for b in payload["data"]["buildings"]]
        assert ids[0] == "bldg-0000000004"
        assert ids[-1] == "bldg-0000000003"

    @pytest.mark.asyncio
    async def test_list_buildings_invalid_sort(self, server):
        """不正な並び替え項目は入力エラー"""
        payload = _payload(await server.call_tool("list_buildings", {"sort_by": "x"}))
        assert payload["error"]["code"] == "BAD_REQUEST"
        assert payload["error"]["message"].startswith("入力エラー")

    @pytest.mark.asyncio
    async def test_get_building(self, server):
        """詳細取得"""
        payload = _payload(
            await server.call_tool("get_building", {"id": "bldg-0000000005"})
        )
        data = payload["data"]
        assert data["buildingSpec"]["name"] == "Tenjin Residence"
        assert data["assetType"]["isResidential"] is True

    @pytest.mark.asyncio
    async def test_get_building_not_found(self, server):
        """存在しないID"""
        payload = _payload(await server.call_tool("get_building", {"id": "missing"}))
        assert payload["error"]["code"] == "NOT_FOUND"
        assert payload["error"]["details"] == {"id": "missing"}

    @pytest.mark.asyncio
    async def test_get_building_invalid_id(self, server):
        """IDが空"""
        payload = _payload(await server.call_tool("get_building", {}))
        assert payload["error"]["code"] == "BAD_REQUEST"
        assert payload["error"]["message"] == "Building ID is required"

    @pytest.mark.asyncio
    async def test_buildings_by_type(self, server):
        """種別絞り込み"""
        payload = _payload(
            await server.call_tool("buildings_by_type", {"type": "office"})
        )
        assert payload["data"]["count"] == 2
        assert payload["data"]["assetType"] == "office"

    @pytest.mark.asyncio
    async def test_buildings_by_invalid_type(self, server):
        """不正な種別"""
        payload = _payload(
            await server.call_tool("buildings_by_type", {"type": "castle"})
        )
        assert payload["error"]["code"] == "VALIDATION_ERROR"
        assert "office" in payload["error"]["details"]["validTypes"]

    @pytest.mark.asyncio
    async def test_building_statistics(self, server):
        """統計"""
        payload = _payload(await server.call_tool("building_statistics", {}))
        assert payload["data"]["total_buildings"] == 5
        assert payload["data"]["total_appraised_price_display"] == "717.5億円"

    @pytest.mark.asyncio
    async def test_data_error(self, tmp_path):
        """データ取得失敗は INTERNAL_ERROR"""
        config = AppConfig(
            data_source=DataSourceConfig(path=str(tmp_path / "missing.json"))
        )
        server = JReitMCPServer(config)
        payload = _payload(await server.call_tool("list_buildings", {}))
        assert payload["error"]["code"] == "INTERNAL_ERROR"


class TestChartTool:
    """building_chart ツールのテスト"""

    @pytest.fixture
    def server(self, app_config):
        """サーバー"""
        return JReitMCPServer(app_config)

    @pytest.mark.asyncio
    async def test_monthly_cap_rate_chart(self, server):
        """月次データは 1month を自動選択"""
        payload = _payload(
            await server.call_tool("building_chart", {"id": "bldg-0000000002"})
        )
        data = payload["data"]
        assert data["metric"] == "cap_rate"
        assert data["granularity"] == "1month"
        assert data["granularityLabel"] == "1ヶ月"
        assert data["availability"]["isMonthlyAvailable"] is True
        assert [p["date"] for p in data["points"]] == [
            "2023/01/31",
            "2023/02/28",
            "2023/03/31",
            "2023/04/30",
        ]

    @pytest.mark.asyncio
    async def test_explicit_granularity(self, server):
        """粒度指定 (年次)"""
        payload = _payload(
            await server.call_tool(
                "building_chart", {"id": "bldg-0000000002", "granularity": "1year"}
            )
        )
        points = payload["data"]["points"]
        assert len(points) == 1
        assert points[0]["date"] == "2023"
        assert points[0]["value"] == pytest.approx(4.7)

    @pytest.mark.asyncio
    async def test_occupancy_chart(self, server):
        """稼働率 (半期データ)"""
        payload = _payload(
            await server.call_tool(
                "building_chart",
                {"id": "bldg-0000000001", "metric": "occupancy_rate"},
            )
        )
        data = payload["data"]
        assert data["granularity"] == "6months"
        assert [p["value"] for p in data["points"]] == [96.8, 97.2, 98.5]

    @pytest.mark.asyncio
    async def test_recent_months_window(self, server):
        """期間指定 (十分長い期間は全件)"""
        payload = _payload(
            await server.call_tool(
                "building_chart", {"id": "bldg-0000000001", "months": 1200}
            )
        )
        assert payload["data"]["months"] == 1200
        assert len(payload["data"]["points"]) == 4

    @pytest.mark.asyncio
    async def test_unavailable_granularity(self, server):
        """データより細かい粒度は検証エラー"""
        payload = _payload(
            await server.call_tool(
                "building_chart", {"id": "bldg-0000000001", "granularity": "1month"}
            )
        )
        assert payload["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arguments",
        [
            {"id": "bldg-0000000001", "granularity": "weekly"},
            {"id": "bldg-0000000001", "months": 0},
            {"granularity": "1year"},
        ],
    )
    async def test_bad_arguments(self, server, arguments):
        """不正な引数は入力エラー"""
        payload = _payload(await server.call_tool("building_chart", arguments))
        assert payload["error"]["code"] == "BAD_REQUEST"

    @pytest.mark.asyncio
    async def test_invalid_metric(self, server):
        """不正な指標"""
        payload = _payload(
            await server.call_tool(
                "building_chart", {"id": "bldg-0000000001", "metric": "noi"}
            )
        )
        assert payload["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_chart_building_not_found(self, server):
        """存在しない建物"""
        payload = _payload(await server.call_tool("building_chart", {"id": "missing"}))
        assert payload["error"]["code"] == "NOT_FOUND"


class TestResources:
    """リソースのテスト"""

    @pytest.fixture
    def server(self, app_config):
        """サーバー"""
        return JReitMCPServer(app_config)

    @pytest.mark.asyncio
    async def test_read_building_resource(self, server):
        """building:// URI の読み取り"""
        text = await server._read_building_resource(
            "building://local.host/bldg-0000000003"
        )
        data = json.loads(text)
        assert data["buildingSpec"]["name"] == "みなとみらいホテル"

    @pytest.mark.asyncio
    async def test_unknown_resource(self, server):
        """未知の URI / 存在しない建物"""
        with pytest.raises(ValueError, match="Unknown resource URI"):
            await server._read_building_resource("property://local.host/x")
        with pytest.raises(ValueError, match="Building not found"):
            await server._read_building_resource("building://local.host/missing")
