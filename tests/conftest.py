"""共通テストフィクスチャとセットアップ"""
# pylint: disable=import-error,redefined-outer-name


import copy
import json
from typing import Any, Dict, List

import pytest

from jreit_mcp.config import DEFAULT_DATA_PATH, AppConfig, DataSourceConfig
from jreit_mcp.models.building_model import Building
from tests.helpers.shared import MONTHLY_CAP_RATE_HISTORY, TOKYO_OSAKA_RECORDS


@pytest.fixture
def tokyo_osaka_records() -> List[Dict[str, Any]]:
    """東京 / 大阪の生レコード"""
    return copy.deepcopy(TOKYO_OSAKA_RECORDS)


@pytest.fixture
def tokyo_osaka_buildings(tokyo_osaka_records) -> List[Building]:
    """東京 / 大阪の Building インスタンス"""
    return [Building.model_validate(record) for record in tokyo_osaka_records]


@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    """同梱データセットの JSON"""
    with open(DEFAULT_DATA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def sample_buildings(sample_payload) -> List[Building]:
    """同梱データセットの Building 一覧"""
    return [
        Building.model_validate(record)
        for record in sample_payload["data"]["jReitBuildings"]
    ]


@pytest.fixture
def monthly_history() -> List[Dict[str, str]]:
    """月次キャップレート履歴"""
    return copy.deepcopy(MONTHLY_CAP_RATE_HISTORY)


@pytest.fixture
def app_config() -> AppConfig:
    """同梱データセットを参照するデフォルト設定"""
    return AppConfig(data_source=DataSourceConfig(path=DEFAULT_DATA_PATH))
