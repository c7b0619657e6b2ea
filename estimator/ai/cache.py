"""Time boxed cache of AI market pricing results.

Entries are keyed by a normalised ``(work type, city, scope)`` string and
are only served while their ``last_updated`` stamp is younger than
``max_age``.  Stale entries are left in place and simply ignored on read;
:meth:`DatabasePricingCache.purge_expired` exists for housekeeping.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from estimator.models import AIPricingCacheEntry
from estimator.pricing.models import AIPricingData

log = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(days=30)
MAX_KEY_LENGTH = 100

_KEY_STRIP = re.compile(r'[^a-z0-9-]')

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def cache_key(scope_of_work: str, city: str, work_type) -> str:
    """Normalise the research inputs into a lookup key.

    Only ``[a-z0-9-]`` survives, so ``("Panel Upgrade!", "Los Angeles",
    "residential_panel_upgrade")`` becomes
    ``"residentialpanelupgrade-losangeles-panelupgrade"``.
    """
    wt = getattr(work_type, 'value', work_type)
    normalized = _KEY_STRIP.sub('', f"{wt}-{city}-{scope_of_work}".lower())
    return normalized[:MAX_KEY_LENGTH]


class PricingCache(ABC):
    """get/put store for :class:`AIPricingData` with expiry on read."""

    def __init__(self, max_age: timedelta = DEFAULT_MAX_AGE, clock: Clock = utcnow) -> None:
        self.max_age = max_age
        self.clock = clock

    def is_fresh(self, data: AIPricingData) -> bool:
        return _aware(self.clock()) - _aware(data.last_updated) < self.max_age

    def get(self, key: str) -> Optional[AIPricingData]:
        data = self._load(key)
        if data is None:
            return None
        if not self.is_fresh(data):
            log.debug("ai cache entry %s expired (last_updated=%s)", key, data.last_updated)
            return None
        return data

    @abstractmethod
    def _load(self, key: str) -> Optional[AIPricingData]:
        """Return the stored entry regardless of age."""

    @abstractmethod
    def put(self, key: str, data: AIPricingData) -> None:
        """Insert or overwrite the entry for ``key``."""


class InMemoryPricingCache(PricingCache):
    """Process local cache, mostly for tests and single-process dev servers."""

    def __init__(self, max_age: timedelta = DEFAULT_MAX_AGE, clock: Clock = utcnow) -> None:
        super().__init__(max_age, clock)
        self._entries: Dict[str, AIPricingData] = {}

    def _load(self, key: str) -> Optional[AIPricingData]:
        return self._entries.get(key)

    def put(self, key: str, data: AIPricingData) -> None:
        self._entries[key] = data

    def __len__(self) -> int:
        return len(self._entries)


class DatabasePricingCache(PricingCache):
    """Cache persisted in the ``ai_pricing_cache`` table."""

    def __init__(self, session, max_age: timedelta = DEFAULT_MAX_AGE, clock: Clock = utcnow) -> None:
        super().__init__(max_age, clock)
        self.session = session

    def _load(self, key: str) -> Optional[AIPricingData]:
        row = self.session.get(AIPricingCacheEntry, key)
        if row is None:
            return None
        return AIPricingData.from_dict(row.data)

    def put(self, key: str, data: AIPricingData) -> None:
        self.session.merge(AIPricingCacheEntry(
            key=key,
            data=data.to_dict(),
            last_updated=_aware(data.last_updated).astimezone(timezone.utc).replace(tzinfo=None),
        ))
        self.session.commit()

    def purge_expired(self) -> int:
        """Delete entries older than ``max_age``; returns the number removed."""
        # sqlite hands back naive datetimes, compare naive UTC
        cutoff = (_aware(self.clock()) - self.max_age).astimezone(timezone.utc).replace(tzinfo=None)
        removed = (
            self.session.query(AIPricingCacheEntry)
            .filter(AIPricingCacheEntry.last_updated <= cutoff)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return removed

    def count(self) -> int:
        return self.session.query(AIPricingCacheEntry).count()
