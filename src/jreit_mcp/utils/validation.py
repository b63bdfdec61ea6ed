# src/jreit_mcp/utils/validation.py
"""検索パラメータのバリデーションとサニタイズ

validate_search_params はエラーを例外ではなくメッセージ一覧として返す。
sanitize_search_params は未検証入力にも安全に使え、例外を送出しない。
"""

import logging
import re
from typing import Any, List, Mapping, Optional

from ..config import SearchConfig, ValidationLimits
from ..models.search_model import SearchParameters, ValidationResult

logger = logging.getLogger(__name__)

# 整数 / 小数 / 空文字のみ許可 (負数表記・全角数字は不可)
NUMBER_PATTERN = re.compile(r"^(\d+)?(\.\d+)?$", re.ASCII)

# (min キー, max キー, エラーメッセージ用名称, 単位)
_RANGE_PAIRS = (
    ("minYield", "maxYield", "yield", "%"),
    ("minPrice", "maxPrice", "price", ""),
    ("minCap", "maxCap", "cap rate", "%"),
)

_NUMERIC_KEYS = tuple(key for pair in _RANGE_PAIRS for key in pair[:2])


def is_valid_number_input(value: Any) -> bool:
    """数値文字列 (または空文字) か"""
    return isinstance(value, str) and NUMBER_PATTERN.fullmatch(value) is not None


def _limits_for(name: str, limits: ValidationLimits) -> tuple[float, float]:
    """範囲名に対応する許容範囲"""
    if name == "yield":
        return limits.min_occupancy_rate, limits.max_occupancy_rate
    if name == "price":
        return limits.min_price_million_yen, limits.max_price_million_yen
    return limits.min_cap_rate, limits.max_cap_rate


def _validate_value(
    value: Any, label: str, name: str, unit: str, limits: ValidationLimits
) -> Optional[str]:
    """単一の数値パラメータを検証しエラーメッセージを返す (問題無ければ None)"""
    if not is_valid_number_input(value):
        return f"{label} must be a valid number"
    if value == "":
        return None

    number = float(value)
    lower, upper = _limits_for(name, limits)
    if number < lower:
        if name == "price":
            return f"{label} cannot be negative"
        return f"{label} cannot be less than {lower:g}{unit}"
    if number > upper:
        if name == "price":
            return f"{label} exceeds maximum allowed value"
        return f"{label} cannot be greater than {upper:g}{unit}"
    return None


def _validate_range(
    params: Mapping[str, Any],
    keys: tuple[str, str, str, str],
    limits: ValidationLimits,
) -> List[str]:
    """min / max ペアを検証"""
    min_key, max_key, name, unit = keys
    errors: List[str] = []
    min_value = params.get(min_key)
    max_value = params.get(max_key)

    for value, bound in ((min_value, "Minimum"), (max_value, "Maximum")):
        if value is None:
            continue
        error = _validate_value(value, f"{bound} {name}", name, unit, limits)
        if error:
            errors.append(error)

    # 両方が有効な数値のときだけ大小関係を確認
    if (
        min_value
        and max_value
        and is_valid_number_input(min_value)
        and is_valid_number_input(max_value)
        and float(min_value) > float(max_value)
    ):
        errors.append(f"Minimum {name} cannot be greater than maximum {name}")
    return errors


def validate_search_params(
    params: Mapping[str, Any], config: Optional[SearchConfig] = None
) -> ValidationResult:
    """
    検索パラメータを検証 (最初のエラーで止めず全件収集)

    Args:
        params: クエリパラメータ (未知のキーは無視)
        config: 検索設定（省略時はデフォルト）

    Returns:
        ValidationResult: 検証結果
    """
    config = config or SearchConfig()
    errors: List[str] = []

    query = params.get("q")
    if query is not None:
        if not isinstance(query, str):
            errors.append("Search query must be a string")
        elif len(query) > config.max_query_length:
            errors.append(
                f"Search query must be at most {config.max_query_length} characters"
            )

    for keys in _RANGE_PAIRS:
        errors.extend(_validate_range(params, keys, config.limits))

    return ValidationResult(is_valid=not errors, errors=errors)


def sanitize_search_params(
    params: Mapping[str, Any], config: Optional[SearchConfig] = None
) -> SearchParameters:
    """
    検索パラメータを正規化

    前後空白を除去し、検索文字列を最大長で切り詰める。数値として解釈できない値・
    空値・文字列以外の値は黙って除外する。大文字小文字は変更しない。
    """
    config = config or SearchConfig()
    cleaned: dict[str, str] = {}

    query = params.get("q")
    if isinstance(query, str):
        query = query.strip()[: config.max_query_length]
        if query:
            cleaned["q"] = query

    for key in _NUMERIC_KEYS:
        value = params.get(key)
        if not isinstance(value, str):
            continue
        value = value.strip()
        if value and is_valid_number_input(value):
            cleaned[key] = value
        elif value:
            logger.debug("Dropping invalid search parameter %s=%r", key, value)

    return SearchParameters(**cleaned)
