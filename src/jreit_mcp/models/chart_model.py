"""チャート (時系列集計) 関連モデル"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class Granularity(str, Enum):
    """集計粒度 (定義順 = 細かい順)"""

    MONTH = "1month"
    QUARTER = "3months"
    HALF_YEAR = "6months"
    YEAR = "1year"

    @property
    def label(self) -> str:
        """日本語ラベル"""
        return _GRANULARITY_SETTINGS[self]["label"]

    @property
    def months_per_bucket(self) -> int:
        """1バケットあたりの月数"""
        return _GRANULARITY_SETTINGS[self]["months"]

    @property
    def threshold_months(self) -> float:
        """利用可能と判定する最小サンプリング間隔の上限 (暦の揺らぎ分を上乗せ)"""
        return _GRANULARITY_SETTINGS[self]["threshold"]


_GRANULARITY_SETTINGS: Dict[Granularity, Dict[str, Any]] = {
    Granularity.MONTH: {"label": "1ヶ月", "months": 1, "threshold": 1.1},
    Granularity.QUARTER: {"label": "4半期", "months": 3, "threshold": 3.1},
    Granularity.HALF_YEAR: {"label": "半期", "months": 6, "threshold": 6.1},
    Granularity.YEAR: {"label": "1年", "months": 12, "threshold": math.inf},
}


class DataGranularity(BaseModel):
    """データのサンプリング間隔から判定した利用可能粒度"""

    min_interval_months: float = Field(default=0, description="最小サンプリング間隔（月）")
    is_monthly_available: bool = True
    is_quarterly_available: bool = True
    is_half_yearly_available: bool = True

    def is_available(self, granularity: Granularity) -> bool:
        """指定粒度が利用可能か (年次は常に可)"""
        if granularity is Granularity.MONTH:
            return self.is_monthly_available
        if granularity is Granularity.QUARTER:
            return self.is_quarterly_available
        if granularity is Granularity.HALF_YEAR:
            return self.is_half_yearly_available
        return True

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON 化 (inf は None)"""
        interval = self.min_interval_months
        return {
            "minIntervalMonths": None if math.isinf(interval) else interval,
            "isMonthlyAvailable": self.is_monthly_available,
            "isQuarterlyAvailable": self.is_quarterly_available,
            "isHalfYearlyAvailable": self.is_half_yearly_available,
            "isYearlyAvailable": True,
        }


class ChartPoint(BaseModel):
    """チャート表示用の集計点"""

    date: str = Field(..., description="粒度に応じた表示ラベル")
    value: float = Field(..., description="バケット平均値（小数2桁）")
    sort_key: datetime = Field(..., description="代表日 (並び替え用)")

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON 化"""
        return {
            "date": self.date,
            "value": self.value,
            "sortKey": self.sort_key.isoformat(),
        }
