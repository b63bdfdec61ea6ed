# src/jreit_mcp/utils/search_engine.py
"""建物検索フィルタ

テキスト一致 → 稼働率 → 鑑定評価額 → キャップレート の順に評価し、
最初に不一致となった時点でその建物を除外する。レコード側の数値が
解釈できない場合は例外にせず「不一致」として扱う。
"""

import logging
import math
from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..config import SearchConfig
from ..models.building_model import Building
from ..models.search_model import FilteredResult, SearchParameters, ValidationResult
from .currency import convert_yen_to_million_yen
from .validation import sanitize_search_params, validate_search_params

logger = logging.getLogger(__name__)

BuildingPredicate = Callable[[Building], bool]


def parse_float(value: Any) -> float:
    """数値化。解釈できない値は NaN。"""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _bound(value: Optional[str]) -> Optional[float]:
    """フィルタ境界値 (未指定なら None)"""
    if value is None or value == "":
        return None
    bound = parse_float(value)
    return None if math.isnan(bound) else bound


def is_within_bounds(
    value: float, lower: Optional[float], upper: Optional[float]
) -> bool:
    """境界内か。NaN はどの境界に対しても不一致。"""
    if lower is None and upper is None:
        return True
    if math.isnan(value):
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def matches_text(building: Building, query: Optional[str]) -> bool:
    """建物名または住所の部分一致 (大文字小文字を区別しない)

    str.lower() による単純な小文字化のみ行う。全角 / 半角の揺れは吸収しない。
    """
    if not query:
        return True
    needle = query.lower()
    return needle in building.name.lower() or needle in building.address.lower()


def matches_occupancy(building: Building, params: SearchParameters) -> bool:
    """稼働率 (先頭スナップショット) の範囲判定。スナップショットが無ければ制約なし。"""
    occupancy = building.latest_occupancy_rate
    if occupancy is None:
        return True
    return is_within_bounds(
        parse_float(occupancy), _bound(params.min_yield), _bound(params.max_yield)
    )


def matches_price(building: Building, params: SearchParameters) -> bool:
    """鑑定評価額 (百万円換算) の範囲判定"""
    price = building.appraised_price
    price_million_yen = (
        math.nan if price is None else convert_yen_to_million_yen(price)
    )
    return is_within_bounds(
        price_million_yen, _bound(params.min_price), _bound(params.max_price)
    )


def matches_cap_rate(building: Building, params: SearchParameters) -> bool:
    """キャップレートの範囲判定"""
    return is_within_bounds(
        parse_float(building.cap_rate), _bound(params.min_cap), _bound(params.max_cap)
    )


def build_predicate(params: SearchParameters) -> BuildingPredicate:
    """検索条件から合成述語を生成"""

    def predicate(building: Building) -> bool:
        return (
            matches_text(building, params.q)
            and matches_occupancy(building, params)
            and matches_price(building, params)
            and matches_cap_rate(building, params)
        )

    return predicate


def filter_buildings(
    records: Sequence[Building], params: SearchParameters
) -> FilteredResult:
    """
    建物一覧を検索条件で絞り込む

    Args:
        records: 建物一覧 (変更しない)
        params: サニタイズ済み検索パラメータ

    Returns:
        FilteredResult: 元の順序を保った結果と件数、適用条件
    """
    predicate = build_predicate(params)
    results: List[Building] = [building for building in records if predicate(building)]
    logger.debug("Filtered %d -> %d buildings", len(records), len(results))
    return FilteredResult(
        results=results, count=len(results), filters=params.to_filters()
    )


def search_buildings(
    records: Sequence[Building],
    raw_params: Mapping[str, Any],
    config: Optional[SearchConfig] = None,
) -> tuple[ValidationResult, Optional[FilteredResult]]:
    """検証 → サニタイズ → 絞り込み をまとめて実行。検証 NG の場合は結果 None。"""
    validation = validate_search_params(raw_params, config)
    if not validation.is_valid:
        return validation, None
    params = sanitize_search_params(raw_params, config)
    return validation, filter_buildings(records, params)
