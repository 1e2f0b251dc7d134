import math
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from models.calendar_store import AppData, CalendarStore, DayRecord, days_in_month, is_weekend
from models.settings import Settings
from models.status import DayStatus, is_attendance_day, is_attendance_eligible

NOT_AVAILABLE = "N/A"
ZERO_HOURS = "0h 0m"


def _today() -> date:
    """テスト時にモック可能"""
    return date.today()


def format_minutes(minutes: float) -> str:
    """分数を "Hh Mm" 形式にする（時は切り捨て、分は四捨五入）"""
    hours = math.floor(minutes / 60)
    mins = math.floor(minutes % 60 + 0.5)
    if mins == 60:
        hours, mins = hours + 1, 0
    return f"{hours}h {mins}m"


def _is_current_month(reference_date: date, today: date) -> bool:
    return (reference_date.year, reference_date.month) == (today.year, today.month)


def _month_dates(reference_date: date) -> list[date]:
    year, month = reference_date.year, reference_date.month
    return [date(year, month, day) for day in range(1, days_in_month(year, month) + 1)]


def _count_attendance(records) -> tuple[int, int]:
    """(分子, 分母) を数える"""
    numerator = 0
    denominator = 0
    for record in records:
        if is_attendance_eligible(record.status):
            denominator += 1
        if is_attendance_day(record.status, record.time):
            numerator += 1
    return numerator, denominator


def attendance_percentage(
    store: CalendarStore, settings: Settings, reference_date: date
) -> Union[float, str]:
    """対象月の出勤率（%）を返す

    分子: SHOW / EXCEPTION / LEAVE、または時間記録のある WEEKEND / HOLIDAY
    分母: SHOW / NO_SHOW / EXCEPTION / LEAVE
    """
    records = [r for _, r in store.month_records(reference_date.year, reference_date.month)]
    numerator, denominator = _count_attendance(records)
    if denominator == 0:
        return NOT_AVAILABLE
    # 休日出勤は分母に入らないため100%で頭打ちにする
    return round(min(numerator / denominator, 1) * 100, 2)


def avg_logged_minutes(
    store: CalendarStore, settings: Settings, reference_date: date, today: date = None
) -> str:
    """今日までに時間を記録した日の平均勤務時間"""
    today = today or _today()
    logged = [
        record.logged_minutes
        for day, record in store.month_records(reference_date.year, reference_date.month)
        if record.logged_minutes > 0 and day <= today
    ]
    if not logged:
        return NOT_AVAILABLE
    return format_minutes(sum(logged) / len(logged))


@dataclass(frozen=True)
class ProjectedHours:
    average: Optional[str]  # None は今月以外（表示対象外）
    remaining_days: int


def projected_minutes_needed(
    store: CalendarStore, settings: Settings, reference_date: date, today: date = None
) -> ProjectedHours:
    """月末までに1日あたり必要な勤務時間を返す（今月のみ）

    必要時間 = (出勤日数 + 残り日数) * 1日の最低勤務時間
    1日あたり = (必要時間 - 記録済み時間) / 残り日数
    """
    today = today or _today()
    if not _is_current_month(reference_date, today):
        return ProjectedHours(average=None, remaining_days=0)

    total_logged = 0
    show_days = 0
    remaining_days = 0

    for day in _month_dates(reference_date):
        record = store.lookup(day.year, day.month, day.day)
        weekend = is_weekend(day)

        if record is not None and record.status is not DayStatus.EMPTY:
            if record.status is DayStatus.SHOW:
                if day == today and record.logged_minutes == 0:
                    # 今日まだ記録がなければ残り日数に含める（土日は除く）
                    if not weekend:
                        remaining_days += 1
                else:
                    show_days += 1
                    total_logged += record.logged_minutes
            elif record.logged_minutes > 0:
                # ステータスに関係なく時間があれば勤務日として数える
                show_days += 1
                total_logged += record.logged_minutes
        elif not weekend and day >= today:
            remaining_days += 1

    if remaining_days == 0:
        return ProjectedHours(average=NOT_AVAILABLE, remaining_days=0)

    required = (show_days + remaining_days) * settings.min_hours_per_day
    per_day = (required - total_logged) / remaining_days
    if per_day <= 0:
        return ProjectedHours(average=ZERO_HOURS, remaining_days=remaining_days)
    return ProjectedHours(average=format_minutes(per_day), remaining_days=remaining_days)


@dataclass(frozen=True)
class SkipAllowance:
    can_skip: Union[int, str]
    need_show_days: Optional[int]
    empty_days_left: int


def _simulated_counts(
    store: CalendarStore, month_dates: list[date], empty_days: list[date], skips: int
) -> tuple[int, int]:
    """先頭 skips 日の空き平日を NO_SHOW、残りを SHOW とみなして (分子, 分母) を数える"""
    hypothesis = {
        day: DayRecord(status=DayStatus.NO_SHOW if i < skips else DayStatus.SHOW)
        for i, day in enumerate(empty_days)
    }
    records = []
    for day in month_dates:
        if day in hypothesis:
            records.append(hypothesis[day])
        else:
            record = store.lookup(day.year, day.month, day.day)
            if record is not None:
                records.append(record)
    return _count_attendance(records)


def _meets(numerator: int, denominator: int, threshold: int) -> bool:
    return numerator * 100 >= threshold * denominator


def days_can_skip(
    store: CalendarStore, settings: Settings, reference_date: date, today: date = None
) -> Optional[SkipAllowance]:
    """目標出勤率を保ったまま休める日数を返す（今月のみ）

    空き平日を先頭から順に NO_SHOW、残りを SHOW と仮定して出勤率を計算し、
    目標を満たす最大の日数を求める。休む日数を増やしても出勤率は上がらないので、
    最初に目標を下回った時点で打ち切る。
    """
    today = today or _today()
    if not _is_current_month(reference_date, today):
        return None

    month_dates = _month_dates(reference_date)
    show_days = []
    no_show_days = []
    empty_days = []
    for day in month_dates:
        if is_weekend(day):
            continue
        status = store.day_view(day).status
        if status in (DayStatus.SHOW, DayStatus.EXCEPTION):
            show_days.append(day)
        elif status is DayStatus.NO_SHOW:
            no_show_days.append(day)
        elif status is DayStatus.EMPTY:
            empty_days.append(day)

    if not (show_days or no_show_days or empty_days):
        return SkipAllowance(can_skip=NOT_AVAILABLE, need_show_days=None, empty_days_left=0)

    threshold = settings.min_attendance_percentage
    numerator, denominator = _simulated_counts(store, month_dates, empty_days, 0)
    if not _meets(numerator, denominator, threshold):
        # 全ての空き平日に出勤しても届かない場合の不足日数
        shortfall = threshold * denominator - 100 * numerator
        return SkipAllowance(
            can_skip=0,
            need_show_days=-(-shortfall // 100),
            empty_days_left=len(empty_days),
        )

    max_skippable = 0
    for skips in range(1, len(empty_days) + 1):
        numerator, denominator = _simulated_counts(store, month_dates, empty_days, skips)
        if not _meets(numerator, denominator, threshold):
            break
        max_skippable = skips

    return SkipAllowance(
        can_skip=max_skippable,
        need_show_days=None,
        empty_days_left=len(empty_days) - max_skippable,
    )


@dataclass(frozen=True)
class MonthlyStats:
    reference_date: date
    attendance_percentage: Union[float, str]
    avg_logged: str
    projected: ProjectedHours
    skip_allowance: Optional[SkipAllowance]
    settings: Settings


def compute_month_stats(app_data: AppData, reference_date: date, today: date = None) -> MonthlyStats:
    """統計パネルに表示する値をまとめて計算する"""
    today = today or _today()
    store, settings = app_data.calendar, app_data.settings
    return MonthlyStats(
        reference_date=reference_date,
        attendance_percentage=attendance_percentage(store, settings, reference_date),
        avg_logged=avg_logged_minutes(store, settings, reference_date, today=today),
        projected=projected_minutes_needed(store, settings, reference_date, today=today),
        skip_allowance=days_can_skip(store, settings, reference_date, today=today),
        settings=settings,
    )


def format_percentage(value: Union[float, str]) -> str:
    return value if value == NOT_AVAILABLE else f"{value:.2f}%"


def render_stats(stats: MonthlyStats) -> str:
    """統計をテキストにまとめる（コンソール・Slack通知用）"""
    ref = stats.reference_date
    lines = [
        f"📊 {ref.year}年{ref.month}月の出勤統計",
        f"出勤率: {format_percentage(stats.attendance_percentage)}",
        f"平均勤務時間（記録済み）: {stats.avg_logged}",
    ]
    if stats.projected.average is not None:
        lines.append(
            f"残り日数に必要な平均時間: {stats.projected.average}（残り{stats.projected.remaining_days}日）"
        )
    allowance = stats.skip_allowance
    if allowance is not None:
        if allowance.need_show_days is not None:
            lines.append(f"休める日数: 0日（あと{allowance.need_show_days}日の出勤が必要）")
        elif allowance.can_skip == NOT_AVAILABLE:
            lines.append(f"休める日数: {NOT_AVAILABLE}")
        else:
            lines.append(f"休める日数: {allowance.can_skip}日（空き平日 残り{allowance.empty_days_left}日）")
    minimum = stats.settings.min_hours_per_day
    lines.append(
        f"設定: 1日最低 {minimum // 60}h {minimum % 60}m / 目標出勤率 {stats.settings.min_attendance_percentage}%"
    )
    return "\n".join(lines)
