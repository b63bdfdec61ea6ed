# src/jreit_mcp/utils/building_queries.py
"""建物一覧に対する参照系処理 (ID 検索・種別絞り込み・サマリー・統計)"""

import math
from typing import Any, Dict, List, Optional, Sequence

from ..models.building_model import AssetType, Building, BuildingSummary
from ..models.search_model import ValidationResult
from .currency import convert_yen_to_hundred_million_yen, format_currency_amount
from .search_engine import parse_float

MAX_BUILDING_ID_LENGTH = 100

SORT_FIELDS = (
    "name",
    "cap_rate",
    "occupancy_rate",
    "evaluation_amount",
    "acquisition_date",
)


def validate_building_id(building_id: Any) -> ValidationResult:
    """建物IDの検証"""
    errors: List[str] = []
    if building_id is None or building_id == "":
        errors.append("Building ID is required")
    elif not isinstance(building_id, str):
        errors.append("Building ID must be a string")
    elif building_id.strip() == "":
        errors.append("Building ID cannot be empty")
    elif len(building_id) > MAX_BUILDING_ID_LENGTH:
        errors.append(
            f"Building ID must be at most {MAX_BUILDING_ID_LENGTH} characters"
        )
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_asset_type(asset_type: Any) -> ValidationResult:
    """アセット種別の検証"""
    errors: List[str] = []
    valid_types = [member.value for member in AssetType]
    if not asset_type:
        errors.append("Asset type is required")
    elif asset_type not in valid_types:
        errors.append(f"Invalid asset type. Valid types: {', '.join(valid_types)}")
    return ValidationResult(is_valid=not errors, errors=errors)


def find_building_by_id(
    records: Sequence[Building], building_id: str
) -> Optional[Building]:
    """IDで建物を検索 (見つからなければ None)"""
    for building in records:
        if building.id == building_id:
            return building
    return None


def filter_by_asset_type(
    records: Sequence[Building], asset_type: AssetType
) -> List[Building]:
    """種別フラグが立っている建物 (代表種別に限らない)"""
    return [building for building in records if building.asset_type.has(asset_type)]


def summarize_building(building: Building) -> BuildingSummary:
    """一覧表示用サマリーへ変換"""
    occupancy = parse_float(building.latest_occupancy_rate)
    cap_rate = parse_float(building.cap_rate)
    price = building.appraised_price or 0
    return BuildingSummary(
        id=building.id,
        name=building.name,
        type=building.primary_asset_type.label,
        acquisition_date=(
            building.acquisition.acquisition_date if building.acquisition else None
        ),
        cap_rate=None if math.isnan(cap_rate) else cap_rate,
        evaluation_amount=convert_yen_to_hundred_million_yen(price),
        occupancy_rate=0.0 if math.isnan(occupancy) else occupancy,
    )


def sort_summaries(
    summaries: Sequence[BuildingSummary], sort_by: str, descending: bool = False
) -> List[BuildingSummary]:
    """
    サマリー一覧を並び替え

    Args:
        summaries: サマリー一覧
        sort_by: SORT_FIELDS のいずれか
        descending: 降順にするか

    Returns:
        List[BuildingSummary]: 並び替え後の新しいリスト (値が無いものは末尾)
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Invalid sort field: {sort_by}")

    def key(summary: BuildingSummary) -> Any:
        value = getattr(summary, sort_by)
        if isinstance(value, str):
            return value.lower()
        return value

    present = [s for s in summaries if getattr(s, sort_by) is not None]
    missing = [s for s in summaries if getattr(s, sort_by) is None]
    return sorted(present, key=key, reverse=descending) + missing


def _range(values: List[float]) -> Dict[str, Optional[float]]:
    if not values:
        return {"min": None, "max": None}
    return {"min": min(values), "max": max(values)}


def calculate_building_statistics(records: Sequence[Building]) -> Dict[str, Any]:
    """
    建物一覧の統計

    Returns:
        Dict[str, Any]: 件数、種別フラグ別件数、平均CR、平均稼働率、
            鑑定評価額合計（億円 / 表示用文字列）、CR / 稼働率のレンジ
    """
    cap_rates = [
        rate
        for rate in (parse_float(b.cap_rate) for b in records)
        if not math.isnan(rate)
    ]
    occupancy_rates = [
        rate
        for rate in (parse_float(b.latest_occupancy_rate) for b in records)
        if not math.isnan(rate)
    ]
    total_price = sum(b.appraised_price or 0 for b in records)

    return {
        "total_buildings": len(records),
        "asset_types": {
            asset_type.value: len(filter_by_asset_type(records, asset_type))
            for asset_type in AssetType
        },
        "average_cap_rate": (
            round(sum(cap_rates) / len(cap_rates), 2) if cap_rates else None
        ),
        "average_occupancy_rate": (
            round(sum(occupancy_rates) / len(occupancy_rates), 2)
            if occupancy_rates
            else None
        ),
        "total_appraised_price_hundred_million_yen": round(
            convert_yen_to_hundred_million_yen(total_price), 2
        ),
        "total_appraised_price_display": format_currency_amount(total_price),
        "cap_rate_range": _range(cap_rates),
        "occupancy_rate_range": _range(occupancy_rates),
    }
