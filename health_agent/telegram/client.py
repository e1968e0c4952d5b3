"""
Telegram Bot API client with retry logic.
"""

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from health_agent.config import TELEGRAM_API_BASE, TELEGRAM_MESSAGE_CHUNK, logger


def _api_url(bot_token: str, method: str) -> str:
    return f"{TELEGRAM_API_BASE}/bot{bot_token}/{method}"


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((requests.RequestException, requests.Timeout)),
    reraise=True
)
def _send_telegram_chunk(bot_token: str, chat_id: str, text: str, parse_mode: str = None) -> requests.Response:
    """Send a single message chunk to Telegram with retry logic."""
    payload = {
        "chat_id": chat_id,
        "text": text,
        "disable_web_page_preview": True
    }
    if parse_mode:
        payload["parse_mode"] = parse_mode

    return requests.post(_api_url(bot_token, "sendMessage"), json=payload, timeout=30)


def send_telegram(message: str, bot_token: str, chat_id: str, parse_mode: str = None) -> bool:
    """Send message to Telegram with automatic retry. Returns success status.

    Replies are plain text by default: command names like /log_water break
    Markdown parsing.
    """
    try:
        chunks = [message[i:i + TELEGRAM_MESSAGE_CHUNK] for i in range(0, len(message), TELEGRAM_MESSAGE_CHUNK)]

        for chunk in chunks:
            response = _send_telegram_chunk(bot_token, chat_id, chunk, parse_mode=parse_mode)

            # If formatted parsing fails, retry without parse_mode
            if parse_mode and not response.ok and "can't parse entities" in response.text:
                logger.info(f"{parse_mode} parsing failed, sending as plain text...")
                response = _send_telegram_chunk(bot_token, chat_id, chunk)

            if not response.ok:
                logger.error(f"Telegram API error: {response.status_code} - {response.text}")
                return False

        return True

    except Exception as e:
        logger.error(f"Telegram send error: {e}")
        return False


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((requests.RequestException, requests.Timeout)),
    reraise=True
)
def _call(bot_token: str, method: str, payload: dict = None) -> dict:
    """Call a Bot API method and return its result, raising on API errors."""
    response = requests.post(_api_url(bot_token, method), json=payload or {}, timeout=30)
    response.raise_for_status()
    data = response.json()
    if not data.get("ok"):
        raise RuntimeError(f"Telegram {method} failed: {data.get('description', 'unknown error')}")
    return data.get("result")


def get_bot_info(bot_token: str) -> dict:
    """Validate the bot token via getMe. Returns the bot's user object."""
    return _call(bot_token, "getMe")


def get_webhook_info(bot_token: str) -> dict:
    return _call(bot_token, "getWebhookInfo")


def set_webhook(bot_token: str, url: str, secret: str) -> bool:
    """Register the webhook URL with its secret token header."""
    return _call(bot_token, "setWebhook", {"url": url, "secret_token": secret})


def delete_webhook(bot_token: str) -> bool:
    return _call(bot_token, "deleteWebhook")
