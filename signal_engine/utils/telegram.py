"""Telegram delivery for signal alerts. Never log token or chat_id."""

from __future__ import annotations
import logging
from typing import Optional

import requests

logger = logging.getLogger("signal_engine.utils.telegram")

API_URL = "https://api.telegram.org/bot{token}/sendMessage"


def send_telegram(
    text: str,
    bot_token: str = "",
    chat_id: str = "",
    parse_mode: Optional[str] = None,
    timeout: float = 10.0,
) -> bool:
    """Send message to Telegram. Returns True on success; False when unconfigured or on failure."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    payload = {"chat_id": chat_id, "text": text}
    if parse_mode:
        payload["parse_mode"] = parse_mode
    try:
        r = requests.post(API_URL.format(token=bot_token), json=payload, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("Telegram request failed: %s", type(e).__name__)
        return False
    if r.status_code != 200:
        logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
        return False
    return True
