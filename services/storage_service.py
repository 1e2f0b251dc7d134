import json
import sys
from datetime import date
from pathlib import Path

from models.calendar_store import AppData
from models.settings import Settings

EXPORT_PREFIX = "office-hours-data"


def get_default_data(settings: Settings = None) -> AppData:
    return AppData(settings=settings or Settings())


def load_data(path: str, default_settings: Settings = None) -> AppData:
    """JSONファイルからデータを読み込む（なければ・壊れていれば初期データ）"""
    data_path = Path(path)
    if not data_path.exists():
        return get_default_data(default_settings)
    try:
        with open(data_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[出勤トラッカー] データの読み込みに失敗しました: {e}", file=sys.stderr)
        return get_default_data(default_settings)
    return AppData.from_dict(raw, defaults=default_settings)


def save_data(app_data: AppData, path: str) -> None:
    """スナップショット形式でJSONファイルに保存する"""
    data_path = Path(path)
    data_path.parent.mkdir(parents=True, exist_ok=True)
    with open(data_path, "w", encoding="utf-8") as f:
        json.dump(app_data.to_dict(), f, ensure_ascii=False, indent=2)


def export_filename(today: date = None) -> str:
    today = today or date.today()
    return f"{EXPORT_PREFIX}-{today.isoformat()}.json"
