"""Cooldown guard for XP awards.

A cooldown key combines action, material and student. After an award the
key is stamped with the award time; another award for the same key is
refused until the window has fully elapsed.

Stamps live in the xp_cooldowns table so the check runs inside the same
transaction as the award itself.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime

import structlog

from gamify.utils.time_utils import to_epoch_ms

logger = structlog.get_logger(__name__)

# 3 minutes
DEFAULT_COOLDOWN_MS = 180_000

COOLDOWN_MESSAGE = "XP cooldown active. Try again in a few minutes."


@dataclass
class CooldownStatus:
    """Outcome of a cooldown check."""

    allowed: bool
    remaining_ms: int = 0


def cooldown_key(event_type: str, material_id: str, student_id: str) -> str:
    return f"cooldown_{event_type}_{material_id}_{student_id}"


def check_cooldown(
    conn: sqlite3.Connection,
    key: str,
    now: datetime,
    window_ms: int = DEFAULT_COOLDOWN_MS,
) -> CooldownStatus:
    """Check whether an award for key is allowed at now.

    Args:
        conn: Open connection (caller owns the transaction)
        key: Value from cooldown_key()
        now: Current time
        window_ms: Cooldown window in milliseconds

    Returns:
        CooldownStatus with remaining_ms > 0 when refused
    """
    row = conn.execute(
        "SELECT last_awarded_at FROM xp_cooldowns WHERE cooldown_key = ?", (key,)
    ).fetchone()

    if row is None:
        return CooldownStatus(allowed=True)

    elapsed = to_epoch_ms(now) - row["last_awarded_at"]
    if elapsed < window_ms:
        return CooldownStatus(allowed=False, remaining_ms=window_ms - elapsed)

    return CooldownStatus(allowed=True)


def stamp_cooldown(
    conn: sqlite3.Connection, key: str, student_id: str, now: datetime
) -> None:
    """Record now as the last award time for key.

    Stamps belong to the student and are removed with them.
    """
    conn.execute(
        """
        INSERT INTO xp_cooldowns (cooldown_key, student_id, last_awarded_at) VALUES (?, ?, ?)
        ON CONFLICT(cooldown_key) DO UPDATE SET last_awarded_at = excluded.last_awarded_at
        """,
        (key, student_id, to_epoch_ms(now)),
    )
    logger.debug("cooldown.stamped", key=key)
