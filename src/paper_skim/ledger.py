"""Append-only SQLite ledger of reasoning-model spend."""

from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from .config import PricingConfig
from .interfaces import Clock
from .models import ActionKind, UsageEvent, UsageSummary

logger = logging.getLogger(__name__)

SUMMARY_QUANTUM = Decimal("0.0001")


def estimate_cost(input_tokens: int, output_tokens: int, pricing: PricingConfig) -> Decimal:
    """Price one call from the token counts the model reported."""

    return (
        max(0, input_tokens) * pricing.input_rate_per_token
        + max(0, output_tokens) * pricing.output_rate_per_token
    )


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Start of the calendar month of `now` and start of the next one."""

    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class SQLiteUsageLedger:
    """SQLite-backed usage ledger. Rows are inserted, never updated."""

    def __init__(self, db_path: str | Path, clock: Clock = system_clock):
        self.db_path = Path(db_path)
        self.clock = clock
        self._lock = threading.Lock()
        self._last_timestamp: datetime | None = None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS usage (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    user_id TEXT NOT NULL,
                    action TEXT NOT NULL,
                    cost_estimate TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_usage_user_id ON usage(user_id);
                """
            )

    def record(self, actor_id: str, action: ActionKind, cost_estimate: Decimal) -> UsageEvent | None:
        """Append one usage event.

        Storage failures are logged and swallowed so that billing telemetry
        never blocks the analysis result. Returns None in that case.
        """

        try:
            with self._lock:
                event = UsageEvent(
                    event_id=str(uuid.uuid4()),
                    actor_id=actor_id,
                    action=ActionKind(action),
                    cost_estimate=max(Decimal("0"), Decimal(cost_estimate)),
                    timestamp=self._next_timestamp(),
                )
                with self._connect() as conn:
                    conn.execute(
                        """
                        INSERT INTO usage (id, user_id, action, cost_estimate, created_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            event.event_id,
                            event.actor_id,
                            event.action.value,
                            str(event.cost_estimate),
                            event.timestamp.isoformat(),
                        ),
                    )
        except (sqlite3.Error, OSError) as exc:
            logger.error("Failed to record usage for %s (%s): %s", actor_id, action, exc)
            return None

        logger.debug("Recorded %s for %s: $%s", event.action.value, actor_id, event.cost_estimate)
        return event

    def _next_timestamp(self) -> datetime:
        now = self.clock().astimezone(timezone.utc)
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def entries(self, actor_id: str) -> list[UsageEvent]:
        """Return all events of one actor in insertion order."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, action, cost_estimate, created_at
                FROM usage WHERE user_id = ? ORDER BY seq
                """,
                (actor_id,),
            ).fetchall()

        return [
            UsageEvent(
                event_id=row["id"],
                actor_id=row["user_id"],
                action=ActionKind(row["action"]),
                cost_estimate=Decimal(row["cost_estimate"]),
                timestamp=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def summarize(self, actor_id: str, now: datetime | None = None) -> UsageSummary:
        """Query count, total spend, and spend in the current calendar month."""

        now_utc = (now or self.clock()).astimezone(timezone.utc)
        period_start, period_end = month_bounds(now_utc)
        events = self.entries(actor_id)

        total = sum((event.cost_estimate for event in events), Decimal("0"))
        monthly = sum(
            (
                event.cost_estimate
                for event in events
                if period_start <= event.timestamp.astimezone(timezone.utc) < period_end
            ),
            Decimal("0"),
        )
        return UsageSummary(
            actor_id=actor_id,
            total_queries=len(events),
            total_cost=total.quantize(SUMMARY_QUANTUM, rounding=ROUND_HALF_UP),
            monthly_cost=monthly.quantize(SUMMARY_QUANTUM, rounding=ROUND_HALF_UP),
            period_start=period_start,
            period_end=period_end,
        )
