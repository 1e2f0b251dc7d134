from enum import Enum


class DayStatus(str, Enum):
    """1日分の出勤ステータス"""

    EMPTY = "EMPTY"
    SHOW = "SHOW"
    NO_SHOW = "NO_SHOW"
    LEAVE = "LEAVE"
    EXCEPTION = "EXCEPTION"
    HOLIDAY = "HOLIDAY"
    WEEKEND = "WEEKEND"

    @classmethod
    def _missing_(cls, value):
        # 旧データは "NO SHOW" (空白区切り) で保存されている
        if isinstance(value, str) and value.strip().upper().replace(" ", "_") in cls.__members__:
            return cls[value.strip().upper().replace(" ", "_")]
        return None

    @classmethod
    def parse(cls, value) -> "DayStatus":
        """保存値をステータスに変換する（不明な値はEMPTY）"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.EMPTY


# 時間入力を受け付けないステータス
TIME_FORBIDDEN = frozenset({DayStatus.NO_SHOW, DayStatus.LEAVE, DayStatus.EXCEPTION})

# 出勤率の分母に数えるステータス
ELIGIBLE = frozenset({DayStatus.SHOW, DayStatus.NO_SHOW, DayStatus.EXCEPTION, DayStatus.LEAVE})

_ALWAYS_PRESENT = frozenset({DayStatus.SHOW, DayStatus.EXCEPTION, DayStatus.LEAVE})
_PRESENT_IF_WORKED = frozenset({DayStatus.WEEKEND, DayStatus.HOLIDAY})


def forbids_time(status: DayStatus) -> bool:
    return DayStatus.parse(status) in TIME_FORBIDDEN


def is_attendance_day(status: DayStatus, time) -> bool:
    """出勤扱いになる日かを判定する（出勤率の分子）

    SHOW / EXCEPTION / LEAVE は常に出勤扱い。
    WEEKEND / HOLIDAY は時間が記録されている場合のみ出勤扱い。
    """
    status = DayStatus.parse(status)
    if status in _ALWAYS_PRESENT:
        return True
    if status in _PRESENT_IF_WORKED:
        return (time or 0) > 0
    return False


def is_attendance_eligible(status: DayStatus) -> bool:
    """出勤率の分母に数える日かを判定する"""
    return DayStatus.parse(status) in ELIGIBLE
