"""JSONインポート処理

外部システムの日別データを内部のカレンダーデータに変換してマージする。

ステータス対応表:
- "No Show" -> NO_SHOW
- "Branch Holiday" -> HOLIDAY
- "Weekend" -> WEEKEND
- "Leave" / "Exception" -> LEAVE
- "At Office" -> SHOW

dayStatus が "At Office" で backgroundStatus が空でなければ、
backgroundStatus の方を優先して変換する。
"""
import sys
from dataclasses import dataclass
from typing import Optional

from models.calendar_store import AppData, CalendarStore, DayRecord, key_for, parse_iso_date, parse_minutes
from models.exceptions import ImportFormatError, InvalidDateError
from models.settings import Settings
from models.status import DayStatus

AT_OFFICE = "At Office"

PRIMARY_LABELS = {
    "No Show": DayStatus.NO_SHOW,
    "Branch Holiday": DayStatus.HOLIDAY,
    "Weekend": DayStatus.WEEKEND,
    "Leave": DayStatus.LEAVE,
    "Exception": DayStatus.LEAVE,
    AT_OFFICE: DayStatus.SHOW,
}

BACKGROUND_LABELS = {
    "Weekend": DayStatus.WEEKEND,
    "Branch Holiday": DayStatus.HOLIDAY,
    "Leave": DayStatus.LEAVE,
    "Exception": DayStatus.LEAVE,
}


@dataclass(frozen=True)
class ImportResult:
    store: CalendarStore
    imported: int
    skipped: int


def _warn(message: str) -> None:
    print(f"[出勤トラッカー] {message}", file=sys.stderr)


def map_status(day_status: Optional[str], background_status: Optional[str] = None) -> DayStatus:
    """外部ステータスラベルを内部ステータスに変換する"""
    if not isinstance(day_status, str):
        return DayStatus.EMPTY
    if day_status == AT_OFFICE and isinstance(background_status, str) and background_status.strip():
        mapped = BACKGROUND_LABELS.get(background_status)
        if mapped is not None:
            return mapped
    return PRIMARY_LABELS.get(day_status, DayStatus.EMPTY)


def _entry_minutes(entry: dict) -> int:
    """旧形式 timeInMinutes（整数）と新形式 timeCat（文字列）の両方を読む"""
    if "timeInMinutes" in entry:
        raw = entry["timeInMinutes"]
    else:
        raw = entry.get("timeCat")
    return parse_minutes(raw) or 0


def normalize_entry(entry: dict) -> DayRecord:
    status = map_status(entry.get("dayStatus"), entry.get("backgroundStatus"))
    minutes = _entry_minutes(entry)
    time = minutes if status is DayStatus.SHOW or minutes != 0 else None
    return DayRecord(status=status, time=time)


def process_imported_entries(entries, existing: CalendarStore) -> ImportResult:
    """インポートデータを既存ストアにマージした結果を返す

    日付がない・不正なエントリは警告を出してスキップする。
    同じ日付の既存データは上書きし、それ以外の日はそのまま残す。
    """
    if not isinstance(entries, (list, tuple)):
        raise ImportFormatError("インポート形式が不正です: 日別データの配列が必要です")

    updates = {}
    skipped = 0
    for entry in entries:
        if not isinstance(entry, dict):
            _warn(f"オブジェクトでないエントリをスキップしました: {entry!r}")
            skipped += 1
            continue

        raw_date = entry.get("date")
        if not raw_date:
            _warn(f"日付のないエントリをスキップしました: {entry!r}")
            skipped += 1
            continue

        try:
            target_date = parse_iso_date(raw_date)
        except InvalidDateError as e:
            _warn(f"{e} (スキップしました)")
            skipped += 1
            continue

        updates[key_for(target_date)] = normalize_entry(entry)

    return ImportResult(
        store=existing.merge(updates),
        imported=len(entries) - skipped,
        skipped=skipped,
    )


def normalize(entries, existing: CalendarStore) -> CalendarStore:
    return process_imported_entries(entries, existing).store


def export_snapshot(app_data: AppData) -> dict:
    """エクスポート用スナップショット {settings, calendarData} を返す"""
    return app_data.to_dict()


def merge_snapshot(snapshot: dict, app_data: AppData) -> AppData:
    """スナップショットを取り込む（カレンダーは日単位でマージ、設定は置き換え）"""
    incoming = CalendarStore.from_dict(snapshot.get("calendarData"))
    settings = app_data.settings
    if isinstance(snapshot.get("settings"), dict):
        settings = Settings.from_dict(snapshot["settings"], defaults=app_data.settings)
    return AppData(settings=settings, calendar=app_data.calendar.merge(incoming))


def import_payload(payload, app_data: AppData) -> AppData:
    """インポートデータの形式を判別して取り込む"""
    if isinstance(payload, dict) and "calendarData" in payload:
        return merge_snapshot(payload, app_data)
    if isinstance(payload, (list, tuple)):
        result = process_imported_entries(payload, app_data.calendar)
        return app_data.replace_calendar(result.store)
    raise ImportFormatError(
        "インポート形式が不正です: 日別データの配列またはエクスポートしたスナップショットが必要です"
    )
