# src/jreit_mcp/config.py
"""アプリケーション設定。

グローバル定数の代わりに明示的な設定オブジェクトを組み立て、
各コンポーネントのコンストラクタ / 関数へ渡す。
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "JREIT_MCP_CONFIG"
DATA_PATH_ENV_VAR = "JREIT_DATA_PATH"
DATA_URL_ENV_VAR = "JREIT_DATA_URL"

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "../../config/settings.yaml"
)
DEFAULT_DATA_PATH = os.path.join(
    os.path.dirname(__file__), "data/sample_buildings.json"
)


class ValidationLimits(BaseModel):
    """検索フィルタの許容範囲"""

    min_occupancy_rate: float = Field(default=0, description="稼働率下限（%）")
    max_occupancy_rate: float = Field(default=100, description="稼働率上限（%）")
    min_cap_rate: float = Field(default=0, description="キャップレート下限（%）")
    max_cap_rate: float = Field(default=20, description="キャップレート上限（%）")
    min_price_million_yen: float = Field(default=0, description="鑑定評価額下限（百万円）")
    max_price_million_yen: float = Field(
        default=1_000_000, description="鑑定評価額上限（百万円）"
    )


class SearchConfig(BaseModel):
    """検索エンジン設定"""

    max_query_length: int = Field(default=100, description="検索文字列の最大長")
    limits: ValidationLimits = Field(default_factory=ValidationLimits)


class DataSourceConfig(BaseModel):
    """建物データ取得元の設定 (url 指定時は HTTP 取得を優先)"""

    path: str = Field(default=DEFAULT_DATA_PATH, description="ローカル JSON パス")
    url: Optional[str] = Field(default=None, description="リモート JSON URL")
    cache_hours: int = Field(default=24, description="キャッシュ保持時間")
    timeout_seconds: int = Field(default=30, description="HTTP タイムアウト（秒）")


class AppConfig(BaseModel):
    """アプリケーション全体設定"""

    data_source: DataSourceConfig = Field(default_factory=DataSourceConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)


def _read_yaml(config_path: str) -> Dict[str, Any]:
    """YAML を辞書として読む。読めない場合は空 dict。"""
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config %s: %s", config_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Optional[str] = None) -> AppConfig:
    """設定を読み込む

    優先順位: 環境変数 > YAML > デフォルト値

    Args:
        path: 設定ファイルパス（省略時は環境変数 / 既定パス）

    Returns:
        AppConfig: 設定オブジェクト
    """
    config_path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    raw = _read_yaml(config_path)
    try:
        config = AppConfig(**raw)
    except ValidationError as e:
        logger.warning("Invalid config %s, using defaults: %s", config_path, e)
        config = AppConfig()

    data_path = os.environ.get(DATA_PATH_ENV_VAR)
    data_url = os.environ.get(DATA_URL_ENV_VAR)
    if data_path or data_url:
        overrides: Dict[str, Any] = {}
        if data_path:
            overrides["path"] = data_path
        if data_url:
            overrides["url"] = data_url
        config = config.model_copy(
            update={"data_source": config.data_source.model_copy(update=overrides)}
        )
    return config
