"""検索パラメータ / 検索結果モデル"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .building_model import Building

# 外部インターフェースで認識するキー (これ以外は無視)
SEARCH_PARAM_KEYS = (
    "q",
    "minYield",
    "maxYield",
    "minPrice",
    "maxPrice",
    "minCap",
    "maxCap",
)


class SearchParameters(BaseModel):
    """サニタイズ済み検索パラメータ

    数値系は検証済みの数値文字列のまま保持し、比較時に float 化する。
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    q: Optional[str] = Field(default=None, description="検索文字列（建物名 / 住所）")
    min_yield: Optional[str] = Field(
        default=None, alias="minYield", description="稼働率下限（%）"
    )
    max_yield: Optional[str] = Field(
        default=None, alias="maxYield", description="稼働率上限（%）"
    )
    min_price: Optional[str] = Field(
        default=None, alias="minPrice", description="鑑定評価額下限（百万円）"
    )
    max_price: Optional[str] = Field(
        default=None, alias="maxPrice", description="鑑定評価額上限（百万円）"
    )
    min_cap: Optional[str] = Field(
        default=None, alias="minCap", description="キャップレート下限（%）"
    )
    max_cap: Optional[str] = Field(
        default=None, alias="maxCap", description="キャップレート上限（%）"
    )

    def to_filters(self) -> Dict[str, str]:
        """指定されたパラメータのみを外部キーで返す (エコーバック用)"""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def is_empty(self) -> bool:
        """条件が一つも無いか"""
        return not self.to_filters()


class ValidationResult(BaseModel):
    """パラメータ検証結果 (全エラーを収集して返す)"""

    is_valid: bool = Field(..., description="エラーが無ければ True")
    errors: List[str] = Field(default_factory=list, description="エラーメッセージ")


class FilteredResult(BaseModel):
    """フィルタ結果"""

    results: List[Building] = Field(default_factory=list)
    count: int = 0
    filters: Dict[str, str] = Field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON 化可能な辞書 (建物はデータセット形式)"""
        return {
            "results": [building.to_json_dict() for building in self.results],
            "count": self.count,
            "filters": dict(self.filters),
        }
