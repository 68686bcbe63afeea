"""Lightweight Telegram notification for finished load plans.

Sends plain-text messages to a Telegram chat via the Bot API for:
- Plan summaries (items placed, usage, centre of gravity)
- Items left outside the vehicle
- Errors while loading manifests or catalogs

No retry logic; notifications are non-critical.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from loadplanner.monitoring.metrics import PlanMetrics


logger = logging.getLogger(__name__)

DEFAULT_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID", "")
TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


async def send_telegram(
    message: str,
    chat_id: str | None = None,
    token: str | None = None,
) -> bool:
    """Send a plain-text message to a Telegram chat.

    Args:
        message: Text to send.
        chat_id: Telegram chat ID. Defaults to TELEGRAM_CHAT_ID env var.
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN env var.

    Returns:
        True if the message was accepted, False otherwise (including when
        no token or chat is configured).
    """
    token = token or os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return False

    chat_id = chat_id or DEFAULT_CHAT_ID
    if not chat_id:
        return False

    url = TELEGRAM_API.format(token=token)
    payload = {"chat_id": chat_id, "text": message}

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
            data = resp.json()
            return bool(data.get("ok", False))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Telegram notification failed: %s", exc)
        return False


def format_plan_summary(metrics: PlanMetrics) -> str:
    """Format a finished plan notification.

    Example:
        >>> m = PlanMetrics("plan-7", vehicle="Mega trailer", total_items=30,
        ...                 placed_items=28, outside_items=2, weight_usage_pct=61.25,
        ...                 volume_usage_pct=74.0)
        >>> print(format_plan_summary(m))
        🚚 Load Plan: plan-7
        Vehicle: Mega trailer
        Placed: 28/30 items
        Weight: 61.2%
        Volume: 74.0%
        Outside: 2
    """
    return (
        f"🚚 Load Plan: {metrics.plan_name}\n"
        f"Vehicle: {metrics.vehicle or 'custom'}\n"
        f"Placed: {metrics.placed_items}/{metrics.total_items} items\n"
        f"Weight: {metrics.weight_usage_pct:.1f}%\n"
        f"Volume: {metrics.volume_usage_pct:.1f}%\n"
        f"Outside: {metrics.outside_items}"
    )


def format_unpacked(names: list[str], limit: int = 10) -> str:
    """Format the list of items that did not fit.

    Example:
        >>> print(format_unpacked(["EUR pallet", "EUR pallet", "IBC"]))
        📦 Left outside: 3
        - EUR pallet x2
        - IBC x1
    """
    counts: dict[str, int] = {}
    for name in names:
        counts[name] = counts.get(name, 0) + 1

    lines = [f"📦 Left outside: {len(names)}"]
    for name, count in list(counts.items())[:limit]:
        lines.append(f"- {name} x{count}")
    if len(counts) > limit:
        lines.append(f"... and {len(counts) - limit} more types")
    return "\n".join(lines)


def format_error(error_type: str, error_message: str, context: dict[str, Any] | None = None) -> str:
    """Format error notification message.

    Example:
        >>> print(format_error("ConfigError", "Unknown vehicle: tanker", {"manifest": "a.yaml"}))
        ⚠️ Error: ConfigError
        Unknown vehicle: tanker
        Context: manifest=a.yaml
    """
    lines = [
        f"⚠️ Error: {error_type}",
        error_message,
    ]
    if context:
        ctx_str = ", ".join(f"{k}={v}" for k, v in context.items())
        lines.append(f"Context: {ctx_str}")
    return "\n".join(lines)
