"""
Usage Gate - day-scoped generation quotas for content and topic requests.

All read-modify-write access to the persisted counters goes through
UsageGate. The counters are best-effort and client-local: two overlapping
requests of the same kind can both pass the check with a single unit left,
because the check and the commit are separate file operations. That race
window is accepted; there is no cross-process locking.

Usage:
    gate = UsageGate()
    decision = gate.check_and_consume(GenerationKind.CONTENT)
    if not decision.allowed:
        show(decision.message)
    ...  # run the generation
    decision.commit()  # only after success
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Optional

from pydantic import ValidationError

from copysmith.config import config
from copysmith.exceptions import QuotaExceededError
from copysmith.models import DailyUsage, GenerationKind
from copysmith.storage import DayScopedStore
from copysmith.utils.datetime_utils import today_iso
from copysmith.utils.logging import get_logger

logger = get_logger("copysmith.usage")

_STORE_KEYS: Dict[GenerationKind, str] = {
    GenerationKind.CONTENT: "contentUsage",
    GenerationKind.TOPIC: "topicUsage",
}

_LIMIT_NOUNS: Dict[GenerationKind, str] = {
    GenerationKind.CONTENT: "content generations",
    GenerationKind.TOPIC: "topic idea generations",
}


@dataclass
class UsageDecision:
    """Outcome of a quota check; commit() spends the unit after success."""
    kind: GenerationKind
    allowed: bool
    remaining: int
    message: Optional[str] = None
    _gate: Optional["UsageGate"] = field(default=None, repr=False)
    _committed: bool = field(default=False, repr=False)

    def commit(self) -> DailyUsage:
        """Record one successful generation against today's quota."""
        if not self.allowed:
            raise QuotaExceededError(self.message or "Daily limit reached")
        if self._committed:
            return self._gate.peek(self.kind)
        usage = self._gate._decrement(self.kind)
        self._committed = True
        return usage


class UsageGate:
    """Owns the two persisted daily counters."""

    def __init__(self, store: Optional[DayScopedStore] = None, limit: Optional[int] = None):
        self._store = store or DayScopedStore()
        self.limit = limit if limit is not None else config.usage.DAILY_GENERATION_LIMIT

    def _today(self) -> str:
        return today_iso(self._store.now())

    def peek(self, kind: GenerationKind) -> DailyUsage:
        """Current remaining count; a record from another day reads as a full quota."""
        kind = GenerationKind(kind)
        today = self._today()
        raw = self._store.get(_STORE_KEYS[kind])
        if raw:
            try:
                usage = DailyUsage.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.error("usage_record_unreadable", kind=kind.value, error=str(e))
            else:
                if usage.date == today:
                    return usage
        return DailyUsage(count=self.limit, date=today)

    def check_and_consume(self, kind: GenerationKind) -> UsageDecision:
        """Re-read the counter and decide whether a generation may start.

        Nothing is written here; the unit is spent by UsageDecision.commit().
        """
        kind = GenerationKind(kind)
        usage = self.peek(kind)
        if usage.count <= 0:
            message = f"You have reached your daily limit of {self.limit} {_LIMIT_NOUNS[kind]}."
            logger.info("usage_refused", kind=kind.value, limit=self.limit)
            return UsageDecision(kind=kind, allowed=False, remaining=0, message=message, _gate=self)
        return UsageDecision(kind=kind, allowed=True, remaining=usage.count, _gate=self)

    def _decrement(self, kind: GenerationKind) -> DailyUsage:
        current = self.peek(kind)
        # An overlapping request may already have spent the last unit
        updated = DailyUsage(count=max(current.count - 1, 0), date=self._today())
        self._store.set_for_day(_STORE_KEYS[kind], updated.model_dump_json())
        logger.info("usage_committed", kind=kind.value, remaining=updated.count)
        return updated
