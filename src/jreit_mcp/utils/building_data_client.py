# src/jreit_mcp/utils/building_data_client.py
"""建物データセット取得クライアント。

- url 設定時は aiohttp で HTTP 取得、それ以外はローカル JSON を読む
- 取得結果はインスタンス内にキャッシュ (cache_hours で失効)
- モデル検証に失敗したレコードは警告ログを出して読み飛ばす
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from ..config import DataSourceConfig
from ..models.building_model import Building

logger = logging.getLogger(__name__)

USER_AGENT = "JReitBuildingSearchMCP/1.0"


class BuildingDataError(RuntimeError):
    """データセット取得 / 解析の失敗"""


def parse_buildings_payload(payload: Any) -> List[Building]:
    """
    データセット JSON を Building 一覧へ変換

    Args:
        payload: {"data": {"jReitBuildings": [...]}} または {"jReitBuildings": [...]}

    Returns:
        List[Building]: 変換できたレコード (入力順)

    Raises:
        BuildingDataError: ペイロード構造が不正な場合
    """
    if not isinstance(payload, dict):
        raise BuildingDataError("Building payload must be a JSON object")
    data = payload.get("data", payload)
    if not isinstance(data, dict) or not isinstance(data.get("jReitBuildings"), list):
        raise BuildingDataError("Building payload has no 'jReitBuildings' list")

    buildings: List[Building] = []
    for index, raw in enumerate(data["jReitBuildings"]):
        try:
            buildings.append(Building.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid building record #%d: %s", index, e.errors()[:3]
            )
    return buildings


class BuildingDataClient:
    """建物データ取得クライアント"""

    def __init__(self, config: Optional[DataSourceConfig] = None) -> None:
        self.config = config or DataSourceConfig()
        self.session: Optional[aiohttp.ClientSession] = None
        self.cache: Dict[str, Any] = {}
        self.cache_expiry: Dict[str, datetime] = {}

    async def __aenter__(self) -> "BuildingDataClient":
        """非同期コンテキストマネージャーの開始 (URL 取得時のみセッション生成)"""
        if self.config.url and self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
                headers={"User-Agent": USER_AGENT},
            )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """非同期コンテキストマネージャーの終了"""
        if self.session:
            await self.session.close()
            self.session = None

    @property
    def source(self) -> str:
        """現在のデータ取得元"""
        return self.config.url or self.config.path

    def _is_cache_valid(self, cache_key: str) -> bool:
        """キャッシュの有効性チェック"""
        if cache_key not in self.cache:
            return False
        expiry_time = self.cache_expiry.get(cache_key)
        if not expiry_time:
            return False
        return datetime.now() < expiry_time

    def _set_cache(self, cache_key: str, data: Any) -> None:
        """キャッシュの設定"""
        self.cache[cache_key] = data
        self.cache_expiry[cache_key] = datetime.now() + timedelta(
            hours=self.config.cache_hours
        )

    def clear_cache(self) -> None:
        """キャッシュの破棄"""
        self.cache.clear()
        self.cache_expiry.clear()

    async def load_buildings(self) -> List[Building]:
        """建物一覧を取得 (キャッシュ優先)"""
        cache_key = f"buildings_{self.source}"
        if self._is_cache_valid(cache_key):
            return list(self.cache[cache_key])

        if self.config.url:
            payload = await self._fetch_remote(self.config.url)
        else:
            payload = self._read_local(self.config.path)
        buildings = parse_buildings_payload(payload)
        logger.info("Loaded %d buildings from %s", len(buildings), self.source)
        self._set_cache(cache_key, buildings)
        return list(buildings)

    def _read_local(self, path: str) -> Any:
        """ローカル JSON の読み込み"""
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise BuildingDataError(f"Failed to read building data: {e}") from e
        except json.JSONDecodeError as e:
            raise BuildingDataError(f"Invalid building data JSON: {e}") from e

    async def _fetch_remote(self, url: str) -> Any:
        """HTTP 経由の取得"""
        if not self.session:
            raise BuildingDataError("Session not initialized")
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise BuildingDataError(f"API status {response.status}")
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise BuildingDataError(f"Failed to fetch building data: {e}") from e
        except json.JSONDecodeError as e:
            raise BuildingDataError(f"Invalid building data JSON: {e}") from e
