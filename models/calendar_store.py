import calendar
import math
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterator, Optional

from models.exceptions import InvalidDateError
from models.settings import MAX_MINUTES_PER_DAY, Settings
from models.status import TIME_FORBIDDEN, DayStatus

DayKey = tuple[str, str, str]  # ("YYYY", "MM", "DD")

_ISO_DATE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})\s*$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_minutes(value) -> Optional[int]:
    """分数の入力値を整数に変換する（"363" / 363 / 363.0 を受け付ける）"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_iso_date(value: str) -> date:
    """YYYY-MM-DD 形式の文字列を date に変換する"""
    match = _ISO_DATE.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidDateError(f"日付の形式が不正です: {value!r}")
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError as e:
        raise InvalidDateError(f"存在しない日付です: {value!r}") from e


def make_key(year, month, day) -> DayKey:
    return (f"{int(year):04d}", f"{int(month):02d}", f"{int(day):02d}")


def key_for(target_date: date) -> DayKey:
    return make_key(target_date.year, target_date.month, target_date.day)


def key_to_date(key: DayKey) -> date:
    """キーを date に変換する（実在しない日付は InvalidDateError）"""
    try:
        return date(int(key[0]), int(key[1]), int(key[2]))
    except (ValueError, TypeError, IndexError) as e:
        raise InvalidDateError(f"存在しない日付キーです: {key!r}") from e


def is_weekend(target_date: date) -> bool:
    return target_date.weekday() >= 5


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


@dataclass(frozen=True)
class DayRecord:
    status: DayStatus = DayStatus.EMPTY
    time: Optional[int] = None  # 分

    def __post_init__(self):
        status = DayStatus.parse(self.status)
        object.__setattr__(self, "status", status)
        minutes = parse_minutes(self.time)
        if status in TIME_FORBIDDEN or minutes is None:
            object.__setattr__(self, "time", None)
        else:
            object.__setattr__(self, "time", min(max(minutes, 0), MAX_MINUTES_PER_DAY))

    @property
    def logged_minutes(self) -> int:
        return self.time or 0

    @classmethod
    def from_dict(cls, data: dict) -> "DayRecord":
        return cls(status=data.get("status"), time=data.get("time"))

    def to_dict(self) -> dict:
        return {"status": self.status.value, "time": self.time}


def default_record(target_date: date) -> DayRecord:
    """記録のない日の既定値（土日はWEEKEND、平日はEMPTY）"""
    status = DayStatus.WEEKEND if is_weekend(target_date) else DayStatus.EMPTY
    return DayRecord(status=status, time=None)


class CalendarStore(Mapping):
    """(年, 月, 日) をキーとする日別記録の不変マッピング

    更新系メソッドは常に新しいストアを返し、自身は変更しない。
    """

    def __init__(self, records: Mapping = None):
        self._records: dict[DayKey, DayRecord] = {}
        for key, record in (records or {}).items():
            key = make_key(*key)
            key_to_date(key)
            if not isinstance(record, DayRecord):
                record = DayRecord.from_dict(record)
            self._records[key] = record

    def __getitem__(self, key) -> DayRecord:
        try:
            key = make_key(*key)
        except (TypeError, ValueError):
            raise KeyError(key) from None
        return self._records[key]

    def __iter__(self) -> Iterator[DayKey]:
        return iter(sorted(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"CalendarStore({len(self._records)} days)"

    def lookup(self, year, month, day) -> Optional[DayRecord]:
        """指定日の記録を返す（未記録ならNone）"""
        return self._records.get(make_key(year, month, day))

    def day_view(self, target_date: date) -> DayRecord:
        """指定日の記録、なければ曜日に応じた既定値を返す"""
        record = self._records.get(key_for(target_date))
        return record if record is not None else default_record(target_date)

    def month_records(self, year: int, month: int) -> list[tuple[date, DayRecord]]:
        """指定月に記録されている日を日付順に返す"""
        prefix = make_key(year, month, 1)[:2]
        return [
            (key_to_date(key), record)
            for key, record in sorted(self._records.items())
            if key[:2] == prefix
        ]

    def with_day(self, target_date: date, record: DayRecord) -> "CalendarStore":
        return self.merge({key_for(target_date): record})

    def merge(self, records: Mapping) -> "CalendarStore":
        """指定キーだけを上書きした新しいストアを返す"""
        merged = dict(self._records)
        merged.update(CalendarStore(records)._records)
        return CalendarStore(merged)

    @classmethod
    def from_dict(cls, data: dict) -> "CalendarStore":
        """入れ子形式 {年: {月: {日: {status, time}}}} から生成する

        実在しない日付や形式の崩れた要素は警告を出してスキップする。
        """
        records: dict[DayKey, DayRecord] = {}
        if not isinstance(data, dict):
            return cls()
        for year, months in data.items():
            if not isinstance(months, dict):
                continue
            for month, days in months.items():
                if not isinstance(days, dict):
                    continue
                for day, record in days.items():
                    try:
                        key = make_key(year, month, day)
                        key_to_date(key)
                    except (ValueError, InvalidDateError):
                        print(
                            f"[出勤トラッカー] 不正な日付キーをスキップしました: {year}-{month}-{day}",
                            file=sys.stderr,
                        )
                        continue
                    if not isinstance(record, dict):
                        continue
                    records[key] = DayRecord.from_dict(record)
        return cls(records)

    def to_dict(self) -> dict:
        nested: dict = {}
        for (year, month, day), record in sorted(self._records.items()):
            nested.setdefault(year, {}).setdefault(month, {})[day] = record.to_dict()
        return nested


def upsert_day(store: CalendarStore, target_date: date, status, time=None) -> CalendarStore:
    """1日分の記録を編集画面のルールで更新する

    時間入力不可のステータスは時間をNoneにする。
    EMPTYのまま時間が入力された場合はSHOWに切り替える。
    """
    status = DayStatus.parse(status)
    if status in TIME_FORBIDDEN:
        minutes = None
    else:
        minutes = parse_minutes(time) or 0
        if status is DayStatus.EMPTY and minutes > 0:
            status = DayStatus.SHOW
    return store.with_day(target_date, DayRecord(status=status, time=minutes))


def clear_day(store: CalendarStore, target_date: date) -> CalendarStore:
    return store.with_day(target_date, DayRecord(status=DayStatus.EMPTY, time=0))


@dataclass(frozen=True)
class AppData:
    """設定とカレンダーデータのスナップショット"""

    settings: Settings = field(default_factory=Settings)
    calendar: CalendarStore = field(default_factory=CalendarStore)

    @classmethod
    def from_dict(cls, data: dict, defaults: Settings = None) -> "AppData":
        data = data if isinstance(data, dict) else {}
        return cls(
            settings=Settings.from_dict(data.get("settings"), defaults=defaults),
            calendar=CalendarStore.from_dict(data.get("calendarData")),
        )

    def to_dict(self) -> dict:
        return {
            "settings": self.settings.to_dict(),
            "calendarData": self.calendar.to_dict(),
        }

    def replace_settings(self, settings: Settings) -> "AppData":
        return replace(self, settings=settings)

    def replace_calendar(self, store: CalendarStore) -> "AppData":
        return replace(self, calendar=store)
