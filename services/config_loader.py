import copy
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from models.settings import Settings

DEFAULT_CONFIG = {
    "storage": {
        "path": "office_hours_data.json",
    },
    "settings_defaults": {
        "min_hours_per_day": 300,
        "min_attendance_percentage": 80,
    },
    "calendar": {
        "auto_holidays": False,
    },
    "slack": {
        "enabled": False,
        "notify_channel": "",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定・環境変数とマージして返す"""
    load_dotenv()

    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        config = _deep_merge(DEFAULT_CONFIG, user_config)
    else:
        config = copy.deepcopy(DEFAULT_CONFIG)

    data_path = os.getenv("OFFICE_HOURS_DATA_PATH")
    if data_path:
        config["storage"]["path"] = data_path
    return config


def default_settings(config: dict) -> Settings:
    """設定ファイルの settings_defaults から初期設定を作る"""
    defaults = config.get("settings_defaults", {})
    return Settings.from_input(
        defaults.get("min_hours_per_day"),
        defaults.get("min_attendance_percentage"),
    )
