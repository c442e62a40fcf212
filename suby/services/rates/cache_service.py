"""Process-wide exchange rate table (RateProvider).

Purpose:
    Hold the currency -> rate mapping (units per 1 base-currency unit) that
    every conversion reads, keep it fresh from a remote source, and persist a
    snapshot so the next start has something better than the bare default.

Design:
    - The table is an immutable RateTable value. A refresh builds a new one and
      swaps the reference; readers grab the reference once and never see a
      half-written mapping, so `convert` needs no lock.
    - Lookups never fail: a code missing from the table converts at 1.0.
    - Refresh failures (transport or payload) are logged and dropped; the
      previous table and timestamp stay in place.
    - Background refresh runs the blocking fetch in a worker thread and
      applies the single terminal outcome back on the event loop that owns the
      provider. Overlapping refreshes are last-write-wins.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Protocol, Set

from .base import RateFetchError, RateSource

logger = logging.getLogger("suby.rates")

DEFAULT_RATES: Mapping[str, float] = MappingProxyType({"USD": 1.0})


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryRateStore:
    """Dict-backed KeyValueStore for tests and throwaway processes."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


@dataclass(frozen=True)
class RateTable:
    rates: Mapping[str, float]
    last_updated: Optional[datetime] = None

    @classmethod
    def build(
        cls, rates: Mapping[str, float], last_updated: Optional[datetime] = None
    ) -> "RateTable":
        frozen = {code.upper(): float(rate) for code, rate in rates.items()}
        return cls(rates=MappingProxyType(frozen), last_updated=last_updated)


@dataclass(frozen=True)
class RefreshOutcome:
    ok: bool
    table: RateTable
    error: Optional[str] = None


def _decode_snapshot(raw: str) -> Optional[Dict[str, float]]:
    """Parse a persisted {code: rate} JSON object; None when unusable."""
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict) or not data:
        return None
    out: Dict[str, float] = {}
    for code, rate in data.items():
        if not isinstance(code, str) or isinstance(rate, bool):
            return None
        if not isinstance(rate, (int, float)) or rate <= 0:
            return None
        out[code.upper()] = float(rate)
    return out


class RateProvider:
    """Cached, refreshable rate table with never-failing conversion."""

    def __init__(
        self,
        store: KeyValueStore,
        source: RateSource,
        base_currency: str = "USD",
        cache_key: str = "cached_rates",
    ):
        self._store = store
        self._source = source
        self._base = base_currency.upper()
        self._cache_key = cache_key
        self._table = RateTable.build(DEFAULT_RATES)
        self._inflight: Set[asyncio.Task] = set()

    # Reads -----------------------------------------------------
    @property
    def base_currency(self) -> str:
        return self._base

    @property
    def table(self) -> RateTable:
        return self._table

    @property
    def rates(self) -> Mapping[str, float]:
        return self._table.rates

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._table.last_updated

    def get_rate(self, currency: str) -> float:
        return self._table.rates.get(currency.upper(), 1.0)

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        """(amount / rate[from]) * rate[to]; absent codes count as 1.0."""
        if from_currency.upper() == to_currency.upper():
            return amount
        rates = self._table.rates  # one snapshot for both lookups
        source_rate = rates.get(from_currency.upper(), 1.0)
        target_rate = rates.get(to_currency.upper(), 1.0)
        return (amount / source_rate) * target_rate

    # Persistence -----------------------------------------------
    def load_cached_rates(self) -> RateTable:
        """Install the persisted snapshot, or the default table when there is none."""
        try:
            raw = self._store.get(self._cache_key)
        except Exception:
            logger.warning("rate cache unreadable; using default rates", exc_info=True)
            raw = None
        decoded = _decode_snapshot(raw) if raw else None
        if decoded is None:
            if raw:
                logger.warning("ignoring malformed rate cache under %r", self._cache_key)
            self._table = RateTable.build(DEFAULT_RATES)
        else:
            self._table = RateTable.build(decoded)
            logger.info("loaded %d cached rates", len(decoded))
        return self._table

    def persist_rates(self) -> None:
        payload = json.dumps(dict(self._table.rates), sort_keys=True)
        try:
            self._store.set(self._cache_key, payload)
        except Exception:
            logger.warning("failed to persist rate cache", exc_info=True)

    # Refresh ---------------------------------------------------
    def _fetch(self) -> RefreshOutcome:
        current = self._table
        try:
            fetched = dict(self._source.fetch_rates(self._base))
        except RateFetchError as e:
            return RefreshOutcome(ok=False, table=current, error=str(e))
        except Exception as e:
            logger.exception("rate source %r raised unexpectedly", self._source.name)
            return RefreshOutcome(ok=False, table=current, error=f"{type(e).__name__}: {e}")
        fetched.setdefault(self._base, 1.0)
        table = RateTable.build(fetched, last_updated=datetime.now(timezone.utc))
        return RefreshOutcome(ok=True, table=table)

    def _apply(self, outcome: RefreshOutcome) -> None:
        if not outcome.ok:
            logger.warning(
                "rate refresh failed; keeping previous table",
                extra={"source": self._source.name, "error": outcome.error},
            )
            return
        self._table = outcome.table
        self.persist_rates()
        logger.info(
            "rates refreshed",
            extra={
                "source": self._source.name,
                "base_currency": self._base,
                "rate_count": len(outcome.table.rates),
            },
        )

    def refresh(self) -> RefreshOutcome:
        """Fetch and install a new table synchronously. Never raises."""
        outcome = self._fetch()
        self._apply(outcome)
        return outcome

    def start_refresh(self) -> "asyncio.Task[RefreshOutcome]":
        """Schedule a background refresh on the running loop and return its task.

        Cancelling the task before the fetch completes leaves the table untouched.
        """
        task = asyncio.get_running_loop().create_task(self._refresh_in_background())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _refresh_in_background(self) -> RefreshOutcome:
        outcome = await asyncio.to_thread(self._fetch)
        self._apply(outcome)
        return outcome

    async def aclose(self) -> None:
        """Cancel refreshes still in flight (used on application shutdown)."""
        pending = list(self._inflight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
