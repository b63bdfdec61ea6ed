# src/jreit_mcp/utils/chart_aggregation.py
"""時系列チャートの粒度判定とバケット集計

入力系列の実際のサンプリング間隔から意味のある粒度 (月 / 四半期 / 半期 / 年) を判定し、
選択された粒度でバケット化して平均値と代表日を求める。

日付 / 値の取り出し方は呼び出し側が関数で渡すため、キャップレート履歴・稼働率履歴・
集計済み ChartPoint のいずれにも同じ処理を使える。
"""

import calendar
import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from ..models.chart_model import ChartPoint, DataGranularity, Granularity

logger = logging.getLogger(__name__)

T = TypeVar("T")
DateGetter = Callable[[T], Any]
ValueGetter = Callable[[T], Any]

# 1ヶ月を30日として日差を月数へ換算する (暦上の厳密値ではない)
DAYS_PER_MONTH = 30

# 粗い粒度ほど後ろ (初期表示は先頭から探す)
GRANULARITY_PRIORITY = (
    Granularity.MONTH,
    Granularity.QUARTER,
    Granularity.HALF_YEAR,
    Granularity.YEAR,
)


def parse_date(value: Any) -> Optional[datetime]:
    """日付値を naive datetime へ。解釈できなければ None。

    タイムゾーン付きの値 (末尾 Z を含む) は UTC に揃えてから tzinfo を外す。
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_value(value: Any) -> Optional[float]:
    """数値文字列を float へ。解釈できない / 非有限なら None。"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def calculate_months_between(date1: datetime, date2: datetime) -> float:
    """2日付間の月数 (年差*12 + 月差 + 日差/30 の近似)"""
    year_diff = date2.year - date1.year
    month_diff = date2.month - date1.month
    day_factor = (date2.day - date1.day) / DAYS_PER_MONTH
    return year_diff * 12 + month_diff + day_factor


def is_granularity_available(granularity: Granularity, min_interval: float) -> bool:
    """最小間隔に対して粒度が利用可能か (年次は常に可)"""
    if granularity is Granularity.YEAR:
        return True
    return min_interval <= granularity.threshold_months


def create_default_data_granularity() -> DataGranularity:
    """判定材料が無い場合の既定値 (全粒度利用可)"""
    return DataGranularity(
        min_interval_months=0,
        is_monthly_available=True,
        is_quarterly_available=True,
        is_half_yearly_available=True,
    )


def _dated_values(
    points: Sequence[T], date_of: DateGetter, value_of: Optional[ValueGetter]
) -> List[Tuple[datetime, Optional[float]]]:
    """(日付, 値) の組を日付昇順で返す。日付・値が解釈できない点は捨てる。"""
    pairs: List[Tuple[datetime, Optional[float]]] = []
    for point in points:
        date = parse_date(date_of(point))
        if date is None:
            logger.debug("Skipping point with unparsable date: %r", point)
            continue
        value: Optional[float] = None
        if value_of is not None:
            value = parse_value(value_of(point))
            if value is None:
                logger.debug("Skipping point with unparsable value: %r", point)
                continue
        pairs.append((date, value))
    # 安定ソート: 同日付の点は入力順を維持
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def analyze_granularity(
    points: Sequence[T],
    date_of: DateGetter,
    value_of: Optional[ValueGetter] = None,
) -> DataGranularity:
    """
    データのサンプリング間隔から利用可能な粒度を判定

    Args:
        points: 時系列データ (順不同)
        date_of: 各点から日付を取り出す関数
        value_of: 指定時は値が解釈できない点も除外 (集計対象と揃える)

    Returns:
        DataGranularity: 最小間隔（月）と各粒度の利用可否
    """
    dates = [date for date, _ in _dated_values(points, date_of, value_of)]
    if len(dates) < 2:
        return create_default_data_granularity()

    min_interval = min(
        calculate_months_between(prev, curr) for prev, curr in zip(dates, dates[1:])
    )
    return DataGranularity(
        min_interval_months=min_interval,
        is_monthly_available=is_granularity_available(Granularity.MONTH, min_interval),
        is_quarterly_available=is_granularity_available(
            Granularity.QUARTER, min_interval
        ),
        is_half_yearly_available=is_granularity_available(
            Granularity.HALF_YEAR, min_interval
        ),
    )


def select_initial_granularity(data_granularity: DataGranularity) -> Granularity:
    """利用可能な中で最も細かい粒度"""
    for granularity in GRANULARITY_PRIORITY:
        if data_granularity.is_available(granularity):
            return granularity
    return Granularity.YEAR


def get_time_group_key(date: datetime, granularity: Granularity) -> str:
    """粒度に応じたバケットキー"""
    if granularity is Granularity.MONTH:
        return f"{date.year}-{date.month}"
    if granularity is Granularity.QUARTER:
        return f"{date.year}-Q{(date.month - 1) // 3 + 1}"
    if granularity is Granularity.HALF_YEAR:
        return f"{date.year}-H{(date.month - 1) // 6 + 1}"
    return f"{date.year}"


def format_date_for_display(date: datetime, granularity: Granularity) -> str:
    """粒度に応じた表示ラベル"""
    if granularity is Granularity.MONTH:
        return f"{date.year}/{date.month:02d}/{date.day:02d}"
    if granularity in (Granularity.QUARTER, Granularity.HALF_YEAR):
        return f"{date.year}/{date.month:02d}"
    return f"{date.year}"


def bucket_and_aggregate(
    points: Sequence[T],
    granularity: Granularity,
    date_of: DateGetter,
    value_of: ValueGetter,
) -> List[ChartPoint]:
    """
    時系列を粒度ごとのバケットへまとめて平均化

    各バケットの値は算術平均 (小数2桁に丸め)、代表日はバケット内を日付順に並べた
    中央の点。点数が偶数の場合は前側 (インデックス (n - 1) // 2) を採用する。

    Args:
        points: 時系列データ (順不同、空でも可)
        granularity: 集計粒度
        date_of: 日付取り出し関数
        value_of: 値取り出し関数

    Returns:
        List[ChartPoint]: 代表日昇順の集計点
    """
    buckets: Dict[str, List[Tuple[datetime, float]]] = {}
    for date, value in _dated_values(points, date_of, value_of):
        key = get_time_group_key(date, granularity)
        buckets.setdefault(key, []).append((date, value))  # type: ignore[arg-type]

    chart_points: List[ChartPoint] = []
    for members in buckets.values():
        # members は日付昇順で追加済み
        representative = members[(len(members) - 1) // 2][0]
        average = sum(value for _, value in members) / len(members)
        chart_points.append(
            ChartPoint(
                date=format_date_for_display(representative, granularity),
                value=round(average, 2),
                sort_key=representative,
            )
        )

    chart_points.sort(key=lambda point: point.sort_key)
    return chart_points


def trim_to_recent_months(
    points: Sequence[T],
    months: int,
    date_of: DateGetter,
    now: Optional[datetime] = None,
) -> List[T]:
    """直近 N ヶ月 (基準日から N ヶ月前以降) の点だけを残す"""
    now = parse_date(now) if now is not None else datetime.now()
    if now is None:
        return list(points)
    year, month = divmod(now.year * 12 + now.month - 1 - months, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    cutoff = now.replace(year=year, month=month, day=day)

    kept: List[T] = []
    for point in points:
        date = parse_date(date_of(point))
        if date is not None and date >= cutoff:
            kept.append(point)
    return kept


def build_chart_series(
    points: Sequence[T],
    date_of: DateGetter,
    value_of: ValueGetter,
    granularity: Optional[Granularity] = None,
) -> Tuple[DataGranularity, Granularity, List[ChartPoint]]:
    """粒度判定 → 粒度選択 → 集計 をまとめて実行

    Raises:
        ValueError: 指定された粒度がデータ間隔に対して細かすぎる場合
    """
    data_granularity = analyze_granularity(points, date_of, value_of)
    if granularity is None:
        granularity = select_initial_granularity(data_granularity)
    elif not data_granularity.is_available(granularity):
        raise ValueError(
            f"Granularity '{granularity.value}' is not available for this data "
            f"(minimum interval {data_granularity.min_interval_months:.2f} months)"
        )
    return (
        data_granularity,
        granularity,
        bucket_and_aggregate(points, granularity, date_of, value_of),
    )


# --- 代表的な取り出し関数 ---


def _field(point: Any, *path: str) -> Any:
    """属性 / dict キーどちらでも辿れる取り出し"""
    current = point
    for name in path:
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(name)
        else:
            current = getattr(current, name, None)
    return current


def _first_field(point: Any, *paths: Tuple[str, ...]) -> Any:
    """候補パスのうち最初に値がある (None でない) もの"""
    for path in paths:
        value = _field(point, *path)
        if value is not None:
            return value
    return None


def closing_date_of(point: Any) -> Any:
    """決算日 (キャップレート履歴 / financials 共通)"""
    return _first_field(point, ("closing_date",), ("closingDate",))


def cap_rate_value_of(point: Any) -> Any:
    """キャップレート履歴の値"""
    return _first_field(point, ("cap_rate",), ("capRate",))


def occupancy_rate_value_of(point: Any) -> Any:
    """稼働率履歴 (financials) の値"""
    return _first_field(
        point, ("leasing", "occupancy_rate"), ("leasing", "occupancyRate")
    )


def chart_point_date(point: ChartPoint) -> datetime:
    """集計済み点の代表日 (再集計用)"""
    return point.sort_key


def chart_point_value(point: ChartPoint) -> float:
    """集計済み点の値 (再集計用)"""
    return point.value
