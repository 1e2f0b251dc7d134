"""出勤トラッカー - エントリーポイント"""
import argparse
import json
import os
import sys
from datetime import date

from models.calendar_store import AppData, clear_day, parse_iso_date, upsert_day
from models.exceptions import TrackerError
from models.settings import Settings
from models.status import DayStatus
from services.config_loader import default_settings, load_config
from services.holiday_calendar import LocalHolidayCalendar, prefill_holidays
from services.json_import_service import export_snapshot, import_payload
from services.slack_client import create_notifier
from services.stats_service import compute_month_stats, render_stats
from services.storage_service import export_filename, load_data, save_data

PREFIX = "[出勤トラッカー]"


def _parse_month(value: str) -> date:
    """YYYY-MM 形式を月初の date に変換"""
    if not value:
        return date.today().replace(day=1)
    return parse_iso_date(f"{value}-01")


def load_app_data(config: dict) -> AppData:
    """設定に基づいてデータを読み込む"""
    app_data = load_data(config["storage"]["path"], default_settings(config))
    if config["calendar"]["auto_holidays"]:
        today = date.today()
        calendar = prefill_holidays(app_data.calendar, today.year, today.month)
        app_data = app_data.replace_calendar(calendar)
    return app_data


def cmd_stats(args, config: dict, app_data: AppData) -> AppData:
    stats = compute_month_stats(app_data, _parse_month(args.month))
    text = render_stats(stats)
    if args.notify:
        notifier = create_notifier(
            config,
            token=os.getenv("SLACK_BOT_TOKEN", ""),
            channel=os.getenv("SLACK_NOTIFY_CHANNEL", ""),
        )
        notifier.send(text)
    else:
        print(text)
    return app_data


def cmd_import(args, config: dict, app_data: AppData) -> AppData:
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise TrackerError(f"インポートファイルを読み込めません: {e}") from e
    updated = import_payload(payload, app_data)
    print(f"{PREFIX} インポートしました: {args.file}")
    return updated


def cmd_export(args, config: dict, app_data: AppData) -> AppData:
    path = args.file or export_filename()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(export_snapshot(app_data), f, ensure_ascii=False, indent=2)
    print(f"{PREFIX} エクスポートしました: {path}")
    return app_data


def cmd_set_day(args, config: dict, app_data: AppData) -> AppData:
    target = parse_iso_date(args.date)
    store = upsert_day(app_data.calendar, target, DayStatus.parse(args.status), args.time)
    record = store.day_view(target)
    print(f"{PREFIX} {target.isoformat()}: {record.status.value} ({record.time})")
    return app_data.replace_calendar(store)


def cmd_clear_day(args, config: dict, app_data: AppData) -> AppData:
    target = parse_iso_date(args.date)
    print(f"{PREFIX} {target.isoformat()} をクリアしました")
    return app_data.replace_calendar(clear_day(app_data.calendar, target))


def cmd_settings(args, config: dict, app_data: AppData) -> AppData:
    current = app_data.settings
    if args.min_hours is not None or args.min_percentage is not None:
        current = Settings.from_input(
            args.min_hours if args.min_hours is not None else current.min_hours_per_day,
            args.min_percentage if args.min_percentage is not None else current.min_attendance_percentage,
        )
        app_data = app_data.replace_settings(current)
    print(
        f"{PREFIX} 1日最低 {current.min_hours_per_day}分 / "
        f"目標出勤率 {current.min_attendance_percentage}%"
    )
    return app_data


def cmd_holidays(args, config: dict, app_data: AppData) -> AppData:
    month = _parse_month(args.month)
    store = prefill_holidays(app_data.calendar, month.year, month.month, LocalHolidayCalendar())
    added = len(store) - len(app_data.calendar)
    print(f"{PREFIX} 祝日を{added}日登録しました")
    return app_data.replace_calendar(store)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="office-hours", description="出勤トラッカー")
    parser.add_argument("--config", default="config.yaml", help="設定ファイル（YAML）")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("stats", help="月間統計を表示")
    p.add_argument("--month", help="対象月 YYYY-MM（省略時は今月）")
    p.add_argument("--notify", action="store_true", help="Slackに通知")
    p.set_defaults(func=cmd_stats, save=False)

    p = sub.add_parser("import", help="JSONファイルを取り込む")
    p.add_argument("file")
    p.set_defaults(func=cmd_import, save=True)

    p = sub.add_parser("export", help="スナップショットを書き出す")
    p.add_argument("file", nargs="?")
    p.set_defaults(func=cmd_export, save=False)

    p = sub.add_parser("set-day", help="1日分の記録を更新")
    p.add_argument("date", help="YYYY-MM-DD")
    p.add_argument("status", choices=[s.value for s in DayStatus])
    p.add_argument("--time", help="勤務時間（分）")
    p.set_defaults(func=cmd_set_day, save=True)

    p = sub.add_parser("clear-day", help="1日分の記録をクリア")
    p.add_argument("date", help="YYYY-MM-DD")
    p.set_defaults(func=cmd_clear_day, save=True)

    p = sub.add_parser("settings", help="設定を表示・変更")
    p.add_argument("--min-hours", dest="min_hours", help="1日の最低勤務時間（分）")
    p.add_argument("--min-percentage", dest="min_percentage", help="目標出勤率（%%）")
    p.set_defaults(func=cmd_settings, save=True)

    p = sub.add_parser("holidays", help="祝日をHOLIDAYとして登録")
    p.add_argument("--month", help="対象月 YYYY-MM（省略時は今月）")
    p.set_defaults(func=cmd_holidays, save=True)

    return parser


def main(argv=None) -> int:
    """メイン起動処理"""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    try:
        app_data = load_app_data(config)
        updated = args.func(args, config, app_data)
        if args.save:
            save_data(updated, config["storage"]["path"])
    except TrackerError as e:
        print(f"{PREFIX} エラー: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
