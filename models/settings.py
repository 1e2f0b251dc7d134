from dataclasses import dataclass

DEFAULT_MIN_HOURS_PER_DAY = 300  # 5時間（分）
DEFAULT_MIN_ATTENDANCE_PERCENTAGE = 80

MAX_MINUTES_PER_DAY = 1440


def _to_int(value, default: int) -> int:
    """数値入力を整数に変換（変換できない場合はデフォルト値）"""
    if isinstance(value, bool) or value is None:
        return default
    try:
        if isinstance(value, (int, float)):
            return int(value)
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return default


@dataclass(frozen=True)
class Settings:
    min_hours_per_day: int = DEFAULT_MIN_HOURS_PER_DAY
    min_attendance_percentage: int = DEFAULT_MIN_ATTENDANCE_PERCENTAGE

    @classmethod
    def from_input(cls, min_hours_per_day, min_attendance_percentage) -> "Settings":
        """設定画面の入力値から設定を生成する（範囲外はクランプ）"""
        minutes = _to_int(min_hours_per_day, DEFAULT_MIN_HOURS_PER_DAY)
        percentage = _to_int(min_attendance_percentage, DEFAULT_MIN_ATTENDANCE_PERCENTAGE)
        return cls(
            min_hours_per_day=min(max(minutes, 0), MAX_MINUTES_PER_DAY),
            min_attendance_percentage=min(max(percentage, 0), 100),
        )

    @classmethod
    def from_dict(cls, data: dict = None, defaults: "Settings" = None) -> "Settings":
        """スナップショット形式 {minHoursPerDay, minAttendancePercentage} から生成"""
        base = defaults or cls()
        if not isinstance(data, dict):
            data = {}
        return cls.from_input(
            data.get("minHoursPerDay", base.min_hours_per_day),
            data.get("minAttendancePercentage", base.min_attendance_percentage),
        )

    def to_dict(self) -> dict:
        return {
            "minHoursPerDay": self.min_hours_per_day,
            "minAttendancePercentage": self.min_attendance_percentage,
        }
