# src/jreit_mcp/server.py
"""J-REIT 建物検索MCPサーバー"""

import asyncio
import importlib.metadata
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from mcp.server import Server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from .config import AppConfig, load_config
from .models.building_model import AssetType, Building
from .models.chart_model import Granularity
from .models.search_model import SEARCH_PARAM_KEYS
from .utils.building_data_client import BuildingDataClient, BuildingDataError
from .utils.building_queries import (
    SORT_FIELDS,
    calculate_building_statistics,
    filter_by_asset_type,
    find_building_by_id,
    sort_summaries,
    summarize_building,
    validate_asset_type,
    validate_building_id,
)
from .utils.chart_aggregation import (
    build_chart_series,
    cap_rate_value_of,
    closing_date_of,
    occupancy_rate_value_of,
    trim_to_recent_months,
)
from .utils.responses import create_success_response, error_handlers, to_json_text
from .utils.search_engine import search_buildings

# ロギング設定
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVER_NAME = "jreit-building-search-mcp"
RESOURCE_PREFIX = "building://local.host/"

# チャート指標ごとの (系列取得, 日付取得, 値取得)
CHART_METRICS = {
    "cap_rate": (
        lambda building: building.cap_rate_histories,
        closing_date_of,
        cap_rate_value_of,
    ),
    "occupancy_rate": (
        lambda building: building.financials,
        closing_date_of,
        occupancy_rate_value_of,
    ),
}

_RANGE_SCHEMA = {"type": ["string", "number"]}


def _text(response: Dict[str, Any]) -> List[TextContent]:
    """応答エンベロープを TextContent 化"""
    return [TextContent(type="text", text=to_json_text(response))]


def _number_to_string(value: Any) -> str:
    """JSON 数値を指数表記・桁落ちなしの文字列へ"""
    if isinstance(value, int):
        return str(value)
    text = repr(value)
    if "e" in text or "E" in text:
        # 1e+16 / 1e-05 等は固定小数点へ展開
        return format(Decimal(text), "f")
    return text


def _stringify_params(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """認識キーのみ取り出し、数値で渡された値は文字列へ寄せる"""
    params: Dict[str, Any] = {}
    for key in SEARCH_PARAM_KEYS:
        if key not in arguments or arguments[key] is None:
            continue
        value = arguments[key]
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = _number_to_string(value)
        params[key] = value
    return params


class JReitMCPServer:
    """J-REIT 建物検索MCPサーバー"""

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config or load_config()
        self.server = Server(SERVER_NAME)
        self.data_client = BuildingDataClient(self.config.data_source)

        # ツールとリソースの登録
        self._register_tools()
        self._register_resources()

    def _register_tools(self) -> None:
        """MCPツールの登録 (Server インスタンスへ list / call handlers をバインド)"""

        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            """利用可能なツール一覧を返す"""
            return [
                Tool(
                    name="list_buildings",
                    description="建物一覧 (サマリー) を取得",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "sort_by": {
                                "type": "string",
                                "enum": list(SORT_FIELDS),
                                "description": "並び替え項目",
                            },
                            "descending": {
                                "type": "boolean",
                                "description": "降順",
                                "default": False,
                            },
                        },
                    },
                ),
                Tool(
                    name="search_buildings",
                    description="建物名・住所と稼働率 / 鑑定評価額 / キャップレートの範囲で検索",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "q": {
                                "type": "string",
                                "description": "検索文字列（建物名 / 住所、100文字まで）",
                            },
                            "minYield": {**_RANGE_SCHEMA, "description": "稼働率下限（%）"},
                            "maxYield": {**_RANGE_SCHEMA, "description": "稼働率上限（%）"},
                            "minPrice": {
                                **_RANGE_SCHEMA,
                                "description": "鑑定評価額下限（百万円）",
                            },
                            "maxPrice": {
                                **_RANGE_SCHEMA,
                                "description": "鑑定評価額上限（百万円）",
                            },
                            "minCap": {**_RANGE_SCHEMA, "description": "CR下限（%）"},
                            "maxCap": {**_RANGE_SCHEMA, "description": "CR上限（%）"},
                        },
                    },
                ),
                Tool(
                    name="get_building",
                    description="建物IDで詳細を取得",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "description": "建物ID"}
                        },
                        "required": ["id"],
                    },
                ),
                Tool(
                    name="buildings_by_type",
                    description="アセット種別で建物を絞り込み",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "type": {
                                "type": "string",
                                "enum": [t.value for t in AssetType],
                                "description": "アセット種別",
                            }
                        },
                        "required": ["type"],
                    },
                ),
                Tool(
                    name="building_statistics",
                    description="建物一覧の統計 (種別件数・平均CR等)",
                    inputSchema={"type": "object", "properties": {}},
                ),
                Tool(
                    name="building_chart",
                    description="キャップレート / 稼働率の推移を粒度別に集計",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "description": "建物ID"},
                            "metric": {
                                "type": "string",
                                "enum": list(CHART_METRICS),
                                "description": "集計対象",
                                "default": "cap_rate",
                            },
                            "granularity": {
                                "type": "string",
                                "enum": [g.value for g in Granularity],
                                "description": "集計粒度（省略時はデータに応じ自動選択）",
                            },
                            "months": {
                                "type": "integer",
                                "description": "直近 N ヶ月に限定（オプション）",
                            },
                        },
                        "required": ["id"],
                    },
                ),
            ]

        @self.server.call_tool()
        async def call_tool(
            name: str, arguments: Dict[str, Any]
        ) -> List[TextContent]:  # noqa: D401
            """ツール実行"""
            return await self._dispatch_tool(name, arguments or {})

    async def call_tool(
        self, name: str, arguments: Dict[str, Any]
    ) -> List[TextContent]:
        """decorator 外部からのディスパッチ (テスト / 直接呼び出し用)"""
        return await self._dispatch_tool(name, arguments)

    async def _dispatch_tool(
        self, name: str, arguments: Dict[str, Any]
    ) -> List[TextContent]:
        """ツール名に応じて内部実装関数へ振り分ける。"""
        handlers = {
            "list_buildings": self._list_buildings,
            "search_buildings": self._search_buildings,
            "get_building": self._get_building,
            "buildings_by_type": self._buildings_by_type,
            "building_statistics": self._building_statistics,
            "building_chart": self._building_chart,
        }
        handler = handlers.get(name)
        if handler is None:
            return _text(error_handlers.bad_request(f"Unknown tool: {name}"))
        try:
            return await handler(arguments)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Tool input/validation error: %s", e)
            return _text(error_handlers.bad_request(f"入力エラー: {e}"))
        except BuildingDataError as e:
            logger.error("Failed to load building data: %s", e)
            return _text(
                error_handlers.internal_error(
                    "Failed to load building data", {"error": str(e)}
                )
            )

    def _register_resources(self) -> None:
        """MCPリソースの登録"""

        @self.server.list_resources()
        async def list_resources() -> List[Resource]:
            """利用可能なリソース一覧"""
            buildings = await self._get_buildings()
            # AnyUrl: host にドットを含める (pydantic のバリデーション回避)
            return [
                Resource(
                    uri=f"{RESOURCE_PREFIX}{building.id}",  # type: ignore[arg-type]
                    name=f"建物: {building.name}",
                    description=f"建物ID {building.id} の詳細情報",
                    mimeType="application/json",
                )
                for building in buildings
            ]

        @self.server.read_resource()  # type: ignore[misc]
        async def read_resource(uri: AnyUrl) -> str:  # noqa: D401
            """リソース内容の読み取り"""
            return await self._read_building_resource(str(uri))

    async def _read_building_resource(self, uri: str) -> str:
        """building:// URI から建物 JSON を返す"""
        if not uri.startswith(RESOURCE_PREFIX):
            raise ValueError(f"Unknown resource URI: {uri}")
        building_id = uri.replace(RESOURCE_PREFIX, "")
        building = find_building_by_id(await self._get_buildings(), building_id)
        if building is None:
            raise ValueError(f"Building not found: {building_id}")
        return building.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    async def _get_buildings(self) -> List[Building]:
        """データセットの取得 (クライアント側でキャッシュ)"""
        async with self.data_client:
            return await self.data_client.load_buildings()

    async def _list_buildings(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """建物一覧ツールの実装"""
        summaries = [summarize_building(b) for b in await self._get_buildings()]
        sort_by = arguments.get("sort_by")
        if sort_by:
            summaries = sort_summaries(
                summaries, sort_by, bool(arguments.get("descending", False))
            )
        return _text(
            create_success_response(
                {
                    "buildings": [s.model_dump(by_alias=True) for s in summaries],
                    "count": len(summaries),
                }
            )
        )

    async def _search_buildings(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """建物検索ツールの実装"""
        raw_params = _stringify_params(arguments)
        validation, result = search_buildings(
            await self._get_buildings(), raw_params, self.config.search
        )
        if result is None:
            return _text(
                error_handlers.validation_error(
                    "Invalid search parameters", {"errors": validation.errors}
                )
            )
        logger.info("search_buildings %s -> %d results", result.filters, result.count)
        return _text(create_success_response(result.to_json_dict()))

    async def _get_building(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """建物詳細ツールの実装"""
        building_id = arguments.get("id")
        validation = validate_building_id(building_id)
        if not validation.is_valid:
            return _text(
                error_handlers.bad_request(
                    validation.errors[0], {"errors": validation.errors}
                )
            )
        building = find_building_by_id(await self._get_buildings(), building_id)
        if building is None:
            return _text(error_handlers.not_found("Building not found", {"id": building_id}))
        return _text(create_success_response(building.to_json_dict()))

    async def _buildings_by_type(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """種別絞り込みツールの実装"""
        asset_type = arguments.get("type")
        validation = validate_asset_type(asset_type)
        if not validation.is_valid:
            return _text(
                error_handlers.validation_error(
                    "Invalid asset type",
                    {
                        "assetType": asset_type,
                        "validTypes": [t.value for t in AssetType],
                    },
                )
            )
        buildings = filter_by_asset_type(
            await self._get_buildings(), AssetType(asset_type)
        )
        return _text(
            create_success_response(
                {
                    "buildings": [b.to_json_dict() for b in buildings],
                    "count": len(buildings),
                    "assetType": asset_type,
                }
            )
        )

    async def _building_statistics(
        self, _arguments: Dict[str, Any]
    ) -> List[TextContent]:
        """統計ツールの実装"""
        stats = calculate_building_statistics(await self._get_buildings())
        return _text(create_success_response(stats))

    async def _building_chart(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """チャート集計ツールの実装"""
        building_id = arguments["id"]
        metric = arguments.get("metric") or "cap_rate"
        if metric not in CHART_METRICS:
            return _text(
                error_handlers.validation_error(
                    f"Invalid metric: {metric}", {"validMetrics": list(CHART_METRICS)}
                )
            )
        granularity = self._parse_granularity(arguments.get("granularity"))

        building = find_building_by_id(await self._get_buildings(), building_id)
        if building is None:
            return _text(error_handlers.not_found("Building not found", {"id": building_id}))

        series_of, date_of, value_of = CHART_METRICS[metric]
        points, applied = self._chart_points(series_of(building), date_of, arguments)
        try:
            data_granularity, selected, chart_points = build_chart_series(
                points, date_of, value_of, granularity
            )
        except ValueError as e:
            return _text(error_handlers.validation_error(str(e)))

        return _text(
            create_success_response(
                {
                    "id": building.id,
                    "metric": metric,
                    "granularity": selected.value,
                    "granularityLabel": selected.label,
                    "availability": data_granularity.to_json_dict(),
                    "months": applied,
                    "points": [p.to_json_dict() for p in chart_points],
                }
            )
        )

    @staticmethod
    def _parse_granularity(value: Any) -> Optional[Granularity]:
        """粒度指定の解釈 (未指定は None)"""
        if value in (None, ""):
            return None
        try:
            return Granularity(value)
        except ValueError as e:
            valid = ", ".join(g.value for g in Granularity)
            raise ValueError(f"Invalid granularity '{value}'. Valid: {valid}") from e

    @staticmethod
    def _chart_points(
        series: List[Any], date_of: Any, arguments: Dict[str, Any]
    ) -> Tuple[List[Any], Optional[int]]:
        """期間指定があれば直近 N ヶ月に絞る"""
        months = arguments.get("months")
        if months is None:
            return list(series), None
        months = int(months)
        if months <= 0:
            raise ValueError("months must be greater than 0")
        return trim_to_recent_months(series, months, date_of), months

    async def run(
        self,
        streams: Optional[Tuple[Any, Any]] = None,
        initialization_options: Optional[Any] = None,
        *,
        raise_exceptions: bool = False,
    ) -> None:  # noqa: D401
        """MCPサーバー起動ヘルパー。

        stdio 用トランスポートを生成し InitializationOptions を組み立てて
        mcp.Server.run を呼び出す。テスト用に既存の stream / options も受け取れる。
        """
        from mcp.server.models import (  # pylint: disable=import-outside-toplevel
            InitializationOptions,
        )
        from mcp.server.stdio import (  # pylint: disable=import-outside-toplevel
            stdio_server,
        )
        from mcp.types import (  # pylint: disable=import-outside-toplevel
            ServerCapabilities,
        )

        logger.info("J-REIT Building Search MCP Server starting...")

        if initialization_options is None:
            try:
                version = importlib.metadata.version("jreit-building-search-mcp")
            except importlib.metadata.PackageNotFoundError:  # pragma: no cover
                version = "0.0.0"
            initialization_options = InitializationOptions(
                server_name=self.server.name,
                server_version=version,
                capabilities=ServerCapabilities(),
                instructions="J-REIT 保有建物の検索、統計、キャップレート / 稼働率推移の集計ツールを提供します。",
            )

        if streams is not None:
            read_stream, write_stream = streams
            await self.server.run(
                read_stream,
                write_stream,
                initialization_options,
                raise_exceptions=raise_exceptions,
            )
            return

        # stdio 経由で実行 (通常起動パス)
        async with stdio_server() as (r, w):
            await self.server.run(
                r, w, initialization_options, raise_exceptions=raise_exceptions
            )

    async def cleanup(self) -> None:
        """後処理 (キャッシュ破棄)"""
        self.data_client.clear_cache()


# サーバー起動用の関数
async def main() -> None:
    """メイン関数"""
    server = JReitMCPServer()
    await server.run()


def cli() -> None:
    """console_scripts エントリポイント"""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
