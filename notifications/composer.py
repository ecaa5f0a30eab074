from datetime import datetime, timezone
from typing import Optional

from models.models import NotificationMessage, Shlok

DAILY_TITLE = "Your Daily Bhagavad Gita Shlok"
DAILY_FALLBACK_BODY = "Time for your daily wisdom from the Bhagavad Gita"
USER_TITLE = "Bhagavad Gita Daily Shlok"
CLICK_ACTION = "OPEN_DAILY_SHLOK"
BODY_PREVIEW_LENGTH = 50


def current_utc_time(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{now.hour:02d}:{now.minute:02d}"


def normalize_notification_time(value: str) -> Optional[str]:
    """Zero-pad a stored "H:M" preference to "HH:MM"; None if unusable."""
    parts = value.strip().split(":")
    if len(parts) < 2 or not parts[0].strip() or not parts[1].strip():
        return None
    return f"{parts[0].strip().zfill(2)}:{parts[1].strip().zfill(2)}"


def shlok_data(shlok: Shlok) -> dict[str, str]:
    return {
        "chapter": shlok.chapter or "1",
        "verse": shlok.verse or "1",
        "click_action": CLICK_ACTION,
    }


def build_daily_message(shlok: Shlok, token: Optional[str] = None) -> NotificationMessage:
    if shlok.sanskrit:
        body = (
            f"{shlok.chapter}:{shlok.verse} - "
            f"{shlok.sanskrit[:BODY_PREVIEW_LENGTH]}..."
        )
    else:
        body = DAILY_FALLBACK_BODY
    return NotificationMessage(
        title=DAILY_TITLE, body=body, data=shlok_data(shlok), token=token
    )


def build_user_message(shlok: Shlok, token: Optional[str] = None) -> NotificationMessage:
    return NotificationMessage(
        title=USER_TITLE,
        body=f"Chapter {shlok.chapter}, Verse {shlok.verse}",
        data=shlok_data(shlok),
        token=token,
    )
