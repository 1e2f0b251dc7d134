from datetime import date

import pytest

from models.calendar_store import (
    AppData,
    CalendarStore,
    DayRecord,
    clear_day,
    parse_iso_date,
    upsert_day,
)
from models.exceptions import InvalidDateError
from models.settings import Settings
from models.status import DayStatus


def test_day_record_strips_time_from_forbidden_status():
    """時間入力不可のステータスでは時間がNoneになること"""
    assert DayRecord(DayStatus.NO_SHOW, 120).time is None
    assert DayRecord(DayStatus.LEAVE, 60).time is None
    assert DayRecord(DayStatus.EXCEPTION, 30).time is None


def test_day_record_clamps_time():
    """時間が0〜1440分に収まること"""
    assert DayRecord(DayStatus.SHOW, 2000).time == 1440
    assert DayRecord(DayStatus.SHOW, -5).time == 0
    assert DayRecord(DayStatus.SHOW, "363").time == 363


def test_lookup_absent_day():
    """未記録の日はNoneが返ること"""
    store = CalendarStore()
    assert store.lookup(2027, 2, 1) is None


def test_day_view_weekend_default():
    """未記録の土日はWEEKEND、平日はEMPTYとして扱われること"""
    store = CalendarStore()
    # 2027-02-06は土曜日、2027-02-08は月曜日
    assert store.day_view(date(2027, 2, 6)) == DayRecord(DayStatus.WEEKEND, None)
    assert store.day_view(date(2027, 2, 8)) == DayRecord(DayStatus.EMPTY, None)


def test_keys_are_zero_padded():
    """キーがゼロ埋めの文字列になること"""
    store = CalendarStore().with_day(date(2027, 2, 3), DayRecord(DayStatus.SHOW, 480))
    assert list(store) == [("2027", "02", "03")]
    assert store.lookup("2027", "2", "3") == DayRecord(DayStatus.SHOW, 480)


def test_with_day_does_not_mutate():
    """更新しても元のストアは変わらないこと"""
    original = CalendarStore()
    updated = original.with_day(date(2027, 2, 3), DayRecord(DayStatus.SHOW, 480))
    assert len(original) == 0
    assert len(updated) == 1


def test_invalid_key_rejected():
    """実在しない日付キーは拒否されること"""
    with pytest.raises(InvalidDateError):
        CalendarStore({("2027", "02", "30"): DayRecord(DayStatus.SHOW, 0)})


def test_from_dict_skips_invalid_dates():
    """入れ子形式の読み込みで不正な日付はスキップされること"""
    data = {
        "2027": {
            "02": {
                "03": {"status": "SHOW", "time": 480},
                "30": {"status": "SHOW", "time": 480},
            }
        }
    }
    store = CalendarStore.from_dict(data)
    assert len(store) == 1
    assert store.to_dict() == {"2027": {"02": {"03": {"status": "SHOW", "time": 480}}}}


def test_month_records_sorted_and_filtered():
    """指定月の記録だけが日付順に返ること"""
    store = CalendarStore({
        ("2027", "02", "10"): DayRecord(DayStatus.SHOW, 400),
        ("2027", "02", "01"): DayRecord(DayStatus.NO_SHOW),
        ("2027", "03", "01"): DayRecord(DayStatus.SHOW, 300),
    })
    days = [d for d, _ in store.month_records(2027, 2)]
    assert days == [date(2027, 2, 1), date(2027, 2, 10)]


def test_upsert_empty_with_time_becomes_show():
    """EMPTYで時間を入力するとSHOWになること"""
    store = upsert_day(CalendarStore(), date(2027, 2, 3), DayStatus.EMPTY, "240")
    assert store.lookup(2027, 2, 3) == DayRecord(DayStatus.SHOW, 240)


def test_upsert_forbidden_status_drops_time():
    """NO_SHOWで保存すると時間はNoneになること"""
    store = upsert_day(CalendarStore(), date(2027, 2, 3), DayStatus.NO_SHOW, 120)
    assert store.lookup(2027, 2, 3) == DayRecord(DayStatus.NO_SHOW, None)


def test_upsert_unparseable_time_is_zero():
    """数値でない時間入力は0になること"""
    store = upsert_day(CalendarStore(), date(2027, 2, 6), DayStatus.WEEKEND, "abc")
    assert store.lookup(2027, 2, 6) == DayRecord(DayStatus.WEEKEND, 0)


def test_clear_day():
    """クリアするとEMPTY・0分になること"""
    store = upsert_day(CalendarStore(), date(2027, 2, 3), DayStatus.SHOW, 480)
    store = clear_day(store, date(2027, 2, 3))
    assert store.lookup(2027, 2, 3) == DayRecord(DayStatus.EMPTY, 0)


def test_parse_iso_date():
    """YYYY-MM-DD形式を解釈し、不正な形式はエラーになること"""
    assert parse_iso_date("2025-09-18") == date(2025, 9, 18)
    with pytest.raises(InvalidDateError):
        parse_iso_date("2025/09/18")
    with pytest.raises(InvalidDateError):
        parse_iso_date("2025-02-30")


def test_app_data_round_trip():
    """スナップショット形式で書き出して読み戻せること"""
    app_data = AppData(
        settings=Settings(min_hours_per_day=360, min_attendance_percentage=60),
        calendar=CalendarStore({("2027", "02", "03"): DayRecord(DayStatus.SHOW, 480)}),
    )
    restored = AppData.from_dict(app_data.to_dict())
    assert restored == app_data
