import enum
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"
PUSHOVER_API_URL = "https://api.pushover.net/1/messages.json"
DEFAULT_PUSHOVER_TITLE = "UniFi Alert!"


class Channel(enum.Enum):
    TELEGRAM = "Telegram"
    NTFY = "Ntfy"
    PUSHOVER = "Pushover"
    SLACK = "Slack"


class Notifier:
    """Delivers plain-text notifications to one of the supported services.

    Delivery is best effort: failures are logged and reported through the
    return value of ``send``, never raised.
    """

    def __init__(self, telegram_bot_token: Optional[str] = None, telegram_chat_id: Optional[str] = None,
                 ntfy_url: Optional[str] = None, pushover_token: Optional[str] = None,
                 pushover_user: Optional[str] = None, pushover_title: Optional[str] = None,
                 slack_webhook_url: Optional[str] = None, timeout: int = 10,
                 session: Optional[requests.Session] = None):
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.ntfy_url = ntfy_url
        self.pushover_token = pushover_token
        self.pushover_user = pushover_user
        self.pushover_title = pushover_title or DEFAULT_PUSHOVER_TITLE
        self.slack_webhook_url = slack_webhook_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Notifier":
        return cls(
            telegram_bot_token=config.get("telegram_bot_token"),
            telegram_chat_id=config.get("telegram_chat_id"),
            ntfy_url=config.get("ntfy_url"),
            pushover_token=config.get("pushover_token"),
            pushover_user=config.get("pushover_user"),
            pushover_title=config.get("pushover_title"),
            slack_webhook_url=config.get("slack_webhook_url"),
            timeout=config.get("timeout", 10),
        )

    def send(self, message: str, channel: Channel) -> bool:
        senders = {
            Channel.TELEGRAM: self._send_telegram,
            Channel.NTFY: self._send_ntfy,
            Channel.PUSHOVER: self._send_pushover,
            Channel.SLACK: self._send_slack,
        }
        try:
            response = senders[channel](message)
        except requests.RequestException as e:
            logger.error(f"Failed to send {channel.value} notification: {e}")
            return False
        if response is None:
            return False
        if not response.ok:
            logger.error(f"{channel.value} notification rejected with HTTP {response.status_code}: {response.text[:200]}")
            return False
        logger.debug(f"{channel.value} notification sent")
        return True

    def _missing(self, channel: Channel, *values: Optional[str]) -> bool:
        if all(values):
            return False
        logger.warning(f"{channel.value} notification skipped: credentials are not configured")
        return True

    def _send_telegram(self, message: str) -> Optional[requests.Response]:
        if self._missing(Channel.TELEGRAM, self.telegram_bot_token, self.telegram_chat_id):
            return None
        url = TELEGRAM_API_URL.format(token=self.telegram_bot_token)
        data = {"chat_id": self.telegram_chat_id, "text": message, "parse_mode": "Markdown"}
        response = self.session.post(url, data=data, timeout=self.timeout)
        if response.status_code == 400:
            # device names like "my_laptop" break Markdown entity parsing
            logger.warning(f"Telegram rejected the Markdown message, resending as plain text: {response.text[:200]}")
            plain = {"chat_id": self.telegram_chat_id, "text": message}
            response = self.session.post(url, data=plain, timeout=self.timeout)
        return response

    def _send_ntfy(self, message: str) -> Optional[requests.Response]:
        if self._missing(Channel.NTFY, self.ntfy_url):
            return None
        return self.session.post(self.ntfy_url, data=message.encode("utf-8"), timeout=self.timeout)

    def _send_pushover(self, message: str) -> Optional[requests.Response]:
        if self._missing(Channel.PUSHOVER, self.pushover_token, self.pushover_user):
            return None
        return self.session.post(
            PUSHOVER_API_URL,
            data={"token": self.pushover_token, "user": self.pushover_user,
                  "title": self.pushover_title, "message": message},
            timeout=self.timeout,
        )

    def _send_slack(self, message: str) -> Optional[requests.Response]:
        if self._missing(Channel.SLACK, self.slack_webhook_url):
            return None
        return self.session.post(self.slack_webhook_url, json={"text": message}, timeout=self.timeout)
