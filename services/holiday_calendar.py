from datetime import date

import jpholiday

from models.calendar_store import CalendarStore, DayRecord, days_in_month, is_weekend, key_for
from models.status import DayStatus


class LocalHolidayCalendar:
    """ローカル祝日データ(jpholiday)による祝日判定"""

    def __init__(self):
        self._cache: dict[date, str] = {}

    def holiday_name(self, target_date: date) -> str:
        """祝日名を返す（祝日でなければ空文字）"""
        if target_date not in self._cache:
            self._cache[target_date] = jpholiday.is_holiday_name(target_date) or ""
        return self._cache[target_date]

    def is_holiday(self, target_date: date) -> bool:
        return bool(self.holiday_name(target_date))


def prefill_holidays(
    store: CalendarStore, year: int, month: int, holiday_calendar: LocalHolidayCalendar = None
) -> CalendarStore:
    """未記録の平日のうち祝日をHOLIDAYとして登録した新しいストアを返す"""
    holiday_calendar = holiday_calendar or LocalHolidayCalendar()
    updates = {}
    for day in range(1, days_in_month(year, month) + 1):
        target = date(year, month, day)
        if is_weekend(target) or store.lookup(year, month, day) is not None:
            continue
        if holiday_calendar.is_holiday(target):
            updates[key_for(target)] = DayRecord(status=DayStatus.HOLIDAY, time=None)
    return store.merge(updates) if updates else store
