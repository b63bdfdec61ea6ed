# src/jreit_mcp/utils/currency.py
"""通貨単位変換と表示フォーマット

円 / 百万円 / 億円 の相互変換。フィルタは百万円、一覧表示は億円を使う。
"""

import re
from typing import Dict

# 単位換算定数
YEN_TO_MILLION_YEN = 1_000_000  # 百万円
YEN_TO_HUNDRED_MILLION_YEN = 100_000_000  # 億円

MILLION_YEN_LABEL = "百万円"
HUNDRED_MILLION_YEN_LABEL = "億円"
PERCENTAGE_LABEL = "%"

_NON_NUMERIC = re.compile(r"[^\d.-]")


def convert_yen_to_million_yen(value_in_yen: float) -> float:
    """円 → 百万円"""
    return value_in_yen / YEN_TO_MILLION_YEN


def convert_yen_to_hundred_million_yen(value_in_yen: float) -> float:
    """円 → 億円"""
    return value_in_yen / YEN_TO_HUNDRED_MILLION_YEN


def convert_million_yen_to_yen(value_in_million_yen: float) -> float:
    """百万円 → 円"""
    return value_in_million_yen * YEN_TO_MILLION_YEN


def convert_hundred_million_yen_to_yen(value_in_hundred_million_yen: float) -> float:
    """億円 → 円"""
    return value_in_hundred_million_yen * YEN_TO_HUNDRED_MILLION_YEN


def get_currency_amounts(yen_value: float) -> Dict[str, float]:
    """全単位での金額"""
    return {
        "yen": yen_value,
        "million_yen": convert_yen_to_million_yen(yen_value),
        "hundred_million_yen": convert_yen_to_hundred_million_yen(yen_value),
    }


def format_currency_amount(
    yen_value: float,
    unit: str = "auto",
    decimals: int = 2,
    include_unit: bool = True,
    compact: bool = False,
) -> str:
    """
    金額を読みやすい単位で整形

    Args:
        yen_value: 金額（円）
        unit: "auto" / "yen" / "million" / "hundred-million"
        decimals: 小数桁数
        include_unit: 単位ラベルを付けるか
        compact: 短縮ラベル (億 / 百万) を使うか

    Returns:
        str: 例 "12.5億円", "1,500百万円"
    """
    if unit == "auto":
        if yen_value >= YEN_TO_HUNDRED_MILLION_YEN * 10:
            unit = "hundred-million"
        elif yen_value >= YEN_TO_MILLION_YEN * 10:
            unit = "million"
        else:
            unit = "yen"

    if unit == "hundred-million":
        display_value = convert_yen_to_hundred_million_yen(yen_value)
        unit_label = "億" if compact else HUNDRED_MILLION_YEN_LABEL
    elif unit == "million":
        display_value = convert_yen_to_million_yen(yen_value)
        unit_label = "百万" if compact else MILLION_YEN_LABEL
    else:
        display_value = yen_value
        unit_label = "円"

    # 末尾ゼロは落とし、桁区切りを付与
    formatted = f"{display_value:,.{decimals}f}"
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return f"{formatted}{unit_label}" if include_unit else formatted


def format_percentage(
    value: float, decimals: int = 1, include_symbol: bool = True
) -> str:
    """パーセント表示"""
    formatted = f"{value:.{decimals}f}"
    return f"{formatted}{PERCENTAGE_LABEL}" if include_symbol else formatted


def format_cap_rate(cap_rate: "str | float") -> str:
    """キャップレート表示 (小数2桁)"""
    return format_percentage(float(cap_rate), decimals=2)


def format_occupancy_rate(occupancy_rate: "str | float") -> str:
    """稼働率表示 (小数1桁)"""
    return format_percentage(float(occupancy_rate), decimals=1)


def parse_currency_string(currency_string: str) -> float:
    """書式付き金額文字列を数値化。解釈できなければ 0。"""
    cleaned = _NON_NUMERIC.sub("", currency_string)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def convert_input_to_currency(input_value: str, input_unit: str) -> float:
    """入力値 (単位付き) を円へ変換"""
    value = parse_currency_string(input_value)
    if input_unit == "hundred-million":
        return convert_hundred_million_yen_to_yen(value)
    if input_unit == "million":
        return convert_million_yen_to_yen(value)
    return value


def calculate_percentage_change(old_value: float, new_value: float) -> float:
    """変化率（%）。旧値 0 の場合は 0 または 100。"""
    if old_value == 0:
        return 0.0 if new_value == 0 else 100.0
    return ((new_value - old_value) / old_value) * 100
