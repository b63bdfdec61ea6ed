"""通貨単位変換 / 表示フォーマットのテスト"""

import pytest

from jreit_mcp.utils.currency import (
    calculate_percentage_change,
    convert_hundred_million_yen_to_yen,
    convert_input_to_currency,
    convert_million_yen_to_yen,
    convert_yen_to_hundred_million_yen,
    convert_yen_to_million_yen,
    format_cap_rate,
    format_currency_amount,
    format_occupancy_rate,
    format_percentage,
    get_currency_amounts,
    parse_currency_string,
)


class TestConversions:
    """単位変換のテスト"""

    def test_yen_to_million_yen(self):
        """円 → 百万円"""
        assert convert_yen_to_million_yen(38_500_000_000) == 38_500

    def test_yen_to_hundred_million_yen(self):
        """円 → 億円"""
        assert convert_yen_to_hundred_million_yen(2_650_000_000) == 26.5

    def test_reverse_conversions(self):
        """百万円 / 億円 → 円"""
        assert convert_million_yen_to_yen(9_100) == 9_100_000_000
        assert convert_hundred_million_yen_to_yen(1.5) == 150_000_000

    def test_get_currency_amounts(self):
        """全単位"""
        assert get_currency_amounts(1_000_000_000) == {
            "yen": 1_000_000_000,
            "million_yen": 1_000,
            "hundred_million_yen": 10,
        }


class TestFormatting:
    """表示フォーマットのテスト"""

    @pytest.mark.parametrize(
        "yen, expected",
        [
            (1_500_000_000, "15億円"),
            (123_456_789_000, "1,234.57億円"),
            (250_000_000, "250百万円"),
            (9_999, "9,999円"),
        ],
    )
    def test_auto_unit(self, yen, expected):
        """自動単位選択"""
        assert format_currency_amount(yen) == expected

    def test_explicit_unit(self):
        """単位指定"""
        assert format_currency_amount(1_500_000_000, unit="million") == "1,500百万円"

    def test_compact_and_without_unit(self):
        """短縮ラベル / 単位なし"""
        assert format_currency_amount(1_500_000_000, compact=True) == "15億"
        assert format_currency_amount(1_500_000_000, include_unit=False) == "15"

    def test_percentages(self):
        """パーセント表示"""
        assert format_percentage(12.345) == "12.3%"
        assert format_percentage(12.345, decimals=0, include_symbol=False) == "12"
        assert format_cap_rate("4.5") == "4.50%"
        assert format_occupancy_rate("98.5") == "98.5%"


class TestParsing:
    """入力値の解釈"""

    def test_parse_currency_string(self):
        """書式付き文字列"""
        assert parse_currency_string("1,234.5億円") == 1234.5
        assert parse_currency_string("abc") == 0.0

    @pytest.mark.parametrize(
        "value, unit, expected",
        [
            ("12.5", "hundred-million", 1_250_000_000),
            ("1,500", "million", 1_500_000_000),
            ("980", "yen", 980),
        ],
    )
    def test_convert_input_to_currency(self, value, unit, expected):
        """単位付き入力 → 円"""
        assert convert_input_to_currency(value, unit) == expected

    def test_percentage_change(self):
        """変化率"""
        assert calculate_percentage_change(100, 110) == pytest.approx(10)
        assert calculate_percentage_change(0, 0) == 0.0
        assert calculate_percentage_change(0, 5) == 100.0
