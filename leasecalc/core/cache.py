"""Process-local cache of IFRS 16 calculation results.

Entries are keyed by ``(contract id, hash of the calculation-relevant
fields)``, so editing a cosmetic field such as the title keeps serving the
cached result while any change to the terms misses and forces a
recalculation.

Eviction is FIFO by insertion time, not LRU: when the table is full the entry
inserted first goes, however recently it was read. Reads therefore never
touch the eviction order.

The cache is a performance optimisation only. It is not shared between
worker processes and callers must tolerate a cold cache at any time.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from cachetools import FIFOCache  # type: ignore[import-untyped]

from leasecalc.schemas.cache import CacheEntryInfo, CacheStats
from leasecalc.schemas.lease import CALCULATION_FIELDS, CalculationResult, LeaseContract

logger = logging.getLogger(__name__)

ContractData = Union[LeaseContract, Mapping[str, Any]]


class CacheTTL:
    """Lifetimes (seconds) for the typical kinds of calculation request."""

    SHORT = 2 * 60.0  # interactive what-if calculations
    MEDIUM = 5 * 60.0  # standard contract calculations
    LONG = 15 * 60.0  # reports
    VERY_LONG = 60 * 60.0  # static figures


def generate_data_hash(contract: ContractData) -> str:
    """Deterministic digest of the fields that affect the calculation.

    A plain mapping is first coerced through ``LeaseContract``, so it hashes
    exactly like the equivalent model. Keys are sorted before serialisation and
    the digest does not depend on field order. Raises pydantic's
    ``ValidationError`` (a ``ValueError``) for values that cannot be coerced.
    """
    if not isinstance(contract, LeaseContract):
        contract = LeaseContract.model_validate(contract)
    relevant = contract.model_dump(mode="json", include=set(CALCULATION_FIELDS))

    payload = json.dumps(relevant, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class CacheEntry:
    result: CalculationResult
    timestamp: float
    expires_at: float
    data_hash: str
    contract_id: str


class _EntryTable(FIFOCache):
    """FIFOCache that reports the entries it evicts to its owner."""

    def __init__(self, maxsize: int, on_evict: Callable[[str, CacheEntry], None]) -> None:
        super().__init__(maxsize=maxsize)
        self._on_evict = on_evict

    def popitem(self) -> Tuple[str, CacheEntry]:
        key, entry = super().popitem()
        self._on_evict(key, entry)
        return key, entry

    def clear(self) -> None:
        # MutableMapping.clear() goes through popitem(); a clear is not an eviction
        for key in list(self.keys()):
            del self[key]


class CalculationCache:
    """TTL-bound, size-bounded store of ``CalculationResult`` objects.

    Parameters
    ----------
    max_size : int
        Maximum number of entries; the oldest insertion is evicted beyond it.
    default_ttl : float
        Lifetime in seconds of entries stored without an explicit ``ttl``.
    cleanup_interval : float
        Interval in seconds of the background sweep started by
        :meth:`start_cleanup`. ``0`` disables the sweep.
    clock : callable
        Source of the current time in seconds, ``time.time`` by default.

    All public methods are thread-safe. The background sweep only runs after
    :meth:`start_cleanup` and is stopped by :meth:`destroy`.
    """

    def __init__(
        self,
        max_size: int = 100,
        default_ttl: float = CacheTTL.MEDIUM,
        cleanup_interval: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self._max_size = max_size
        self._default_ttl = default_ttl
        self._cleanup_interval = cleanup_interval
        self._clock = clock

        self._lock = threading.RLock()
        self._entries = _EntryTable(max_size, self._record_eviction)
        self._hits = 0
        self._misses = 0
        self._evictions = 0

        self._stop_event = threading.Event()
        self._cleanup_thread: Optional[threading.Thread] = None

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __enter__(self) -> "CalculationCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Keyed operations
    # ------------------------------------------------------------------

    def _key(self, contract_id: str, contract: ContractData) -> Optional[Tuple[str, str]]:
        """Return ``(cache key, data hash)``, or None when the input cannot be hashed."""
        try:
            data_hash = generate_data_hash(contract)
        except (TypeError, ValueError, AttributeError):
            logger.warning("Could not hash contract %s, bypassing cache", contract_id, exc_info=True)
            return None
        return f"{contract_id}:{data_hash}", data_hash

    def get(self, contract_id: str, contract: ContractData) -> Optional[CalculationResult]:
        """Return the cached result for the contract's current terms, if still valid.

        An expired entry reads as a miss but stays in the table until the
        next :meth:`cleanup` (or until it is overwritten or evicted).
        """
        key = self._key(contract_id, contract)

        with self._lock:
            entry = self._entries.get(key[0]) if key else None
            if entry is not None and entry.expires_at > self._clock():
                self._hits += 1
                logger.debug("Cache hit for %s", key[0])
                return entry.result

            self._misses += 1
        return None

    def set(
        self,
        contract_id: str,
        contract: ContractData,
        result: CalculationResult,
        ttl: Optional[float] = None,
    ) -> None:
        key = self._key(contract_id, contract)
        if key is None:
            return

        cache_key, data_hash = key
        now = self._clock()
        entry = CacheEntry(
            result=result,
            timestamp=now,
            expires_at=now + (self._default_ttl if ttl is None else ttl),
            data_hash=data_hash,
            contract_id=contract_id,
        )

        with self._lock:
            self._entries[cache_key] = entry

    def delete(self, contract_id: str, contract: ContractData) -> bool:
        key = self._key(contract_id, contract)
        if key is None:
            return False
        with self._lock:
            return self._entries.pop(key[0], None) is not None

    def delete_contract(self, contract_id: str) -> int:
        """Remove every entry of ``contract_id`` whatever terms it was stored under."""
        with self._lock:
            keys = [key for key, entry in self._entries.items() if entry.contract_id == contract_id]
            for key in keys:
                del self._entries[key]

        if keys:
            logger.info("Invalidated %d cached result(s) for contract %s", len(keys), contract_id)
        return len(keys)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info("Removed %d expired cache entr%s", len(expired), "y" if len(expired) == 1 else "ies")
        return len(expired)

    def clear(self) -> None:
        """Remove every entry and reset the counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
        logger.info("Calculation cache cleared")

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            timestamps = [entry.timestamp for entry in self._entries.values()]
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                total_requests=total,
                hit_rate=(self._hits / total) * 100 if total else 0.0,
                cache_size=len(timestamps),
                max_size=self._max_size,
                evictions=self._evictions,
                oldest_entry=min(timestamps) if timestamps else None,
                newest_entry=max(timestamps) if timestamps else None,
            )

    def get_cache_info(self) -> List[CacheEntryInfo]:
        with self._lock:
            now = self._clock()
            return [
                CacheEntryInfo(
                    key=key,
                    contract_id=entry.contract_id,
                    timestamp=entry.timestamp,
                    expires_at=entry.expires_at,
                    is_valid=entry.expires_at > now,
                    data_hash=entry.data_hash,
                )
                for key, entry in self._entries.items()
            ]

    def _record_eviction(self, key: str, entry: CacheEntry) -> None:
        # called by the entry table with the lock already held
        self._evictions += 1
        logger.debug("Evicted %s (inserted at %.3f) to stay within %d entries", key, entry.timestamp, self._max_size)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_cleanup(self) -> None:
        """Start the background sweep of expired entries."""
        if self._cleanup_interval <= 0:
            return
        if self._cleanup_thread is not None and self._cleanup_thread.is_alive():
            return

        self._stop_event.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop,
            daemon=True,
            name="leasecalc-cache-cleanup",
        )
        self._cleanup_thread.start()

    def _cleanup_loop(self) -> None:
        while not self._stop_event.wait(self._cleanup_interval):
            self.cleanup()

    def destroy(self) -> None:
        """Stop the background sweep and release every entry."""
        self._stop_event.set()
        if self._cleanup_thread is not None:
            self._cleanup_thread.join(timeout=2.0)
            self._cleanup_thread = None
        with self._lock:
            self._entries.clear()
