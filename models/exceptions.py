class TrackerError(Exception):
    """出勤トラッカーの業務エラー基底クラス"""


class ImportFormatError(TrackerError):
    """インポートデータの形式が不正な場合"""


class InvalidDateError(TrackerError):
    """日付文字列が YYYY-MM-DD として解釈できない場合"""
