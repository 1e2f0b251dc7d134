import sys

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError


class ConsoleNotifier:
    """コンソール出力による通知（フォールバック用）"""

    def send(self, message: str) -> bool:
        print(f"[出勤レポート] {message}", file=sys.stdout)
        return True

    def send_error(self, error: str) -> bool:
        print(f"[出勤レポート エラー] {error}", file=sys.stderr)
        return True


class SlackNotifier:
    """Slack APIによる出勤統計の通知"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = None
        self._fallback = ConsoleNotifier()

        if token:
            self._client = WebClient(token=token)

    def send(self, message: str) -> bool:
        """メッセージ送信（クライアント未設定時はコンソールに出力）"""
        if self._client is None:
            return self._fallback.send(message)

        try:
            self._client.chat_postMessage(channel=self._channel, text=message)
            return True
        except SlackApiError as e:
            print(f"[出勤トラッカー] Slack通知に失敗しました: {e}", file=sys.stderr)
            return False

    def send_error(self, error: str) -> bool:
        message = f"❌ 出勤データの処理に失敗しました（エラー: {error}）"
        return self.send(message)


def create_notifier(config: dict, token: str = "", channel: str = ""):
    """設定に基づいて通知先を選ぶ"""
    slack_config = config["slack"]
    channel = channel or slack_config.get("notify_channel", "")
    if slack_config["enabled"] and token:
        return SlackNotifier(token=token, channel=channel)
    return ConsoleNotifier()
