"""Daily purge of expired refresh tokens and stale OTP records."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from .otp import OtpService
from .tokens import TokenService

logger = logging.getLogger(__name__)


def run_token_cleanup(session_factory: Callable[[], Session], now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or datetime.utcnow()
    db = session_factory()
    try:
        tokens_removed = TokenService(db).delete_expired_tokens(now)
        otps_removed = OtpService(db).delete_expired(now)
    finally:
        db.close()

    if tokens_removed > 0:
        logger.info(f"Removed {tokens_removed} expired tokens")
    if otps_removed > 0:
        logger.info(f"Removed {otps_removed} expired OTP codes")
    return {"tokens": tokens_removed, "otps": otps_removed}


def seconds_until(hour: int, now: datetime) -> float:
    """Seconds from now until the next hour:00 (same day if still ahead)."""
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def token_cleanup_loop(session_factory: Callable[[], Session], hour: int = 1) -> None:
    """Run the cleanup every day at the given UTC hour until cancelled."""
    while True:
        delay = seconds_until(hour, datetime.utcnow())
        logger.debug(f"Next token cleanup in {delay:.0f}s")
        await asyncio.sleep(delay)
        try:
            await asyncio.to_thread(run_token_cleanup, session_factory)
        except Exception:
            logger.exception("Token cleanup failed")
