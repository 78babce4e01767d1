"""Cached calculation entry point used by the API layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from leasecalc.core.cache import CalculationCache
from leasecalc.core.engine import calculate_all
from leasecalc.domain.validation import ensure_valid
from leasecalc.schemas.cache import CacheStats
from leasecalc.schemas.lease import CalculationResult, LeaseContract

logger = logging.getLogger(__name__)


@dataclass
class CalculationOutcome:
    result: CalculationResult
    cached: bool
    cache_stats: CacheStats


def calculate_with_cache(
    cache: CalculationCache,
    contract_id: str,
    contract: LeaseContract,
    ttl: Optional[float] = None,
) -> CalculationOutcome:
    """Return the calculation for ``contract``, computing it only on a cache miss.

    Results are stored for ``ttl`` seconds, or for the cache's ``default_ttl``
    when ``ttl`` is None. Invalid terms raise ``LeaseValidationError`` and
    engine failures raise ``ComputationError``; in both cases nothing is stored.
    """
    cached = cache.get(contract_id, contract)
    if cached is not None:
        return CalculationOutcome(result=cached, cached=True, cache_stats=cache.get_stats())

    ensure_valid(contract)
    result = calculate_all(contract)
    cache.set(contract_id, contract, result, ttl)
    logger.debug("Calculated contract %s (%d periods)", contract_id, len(result.amortization_schedule))

    return CalculationOutcome(result=result, cached=False, cache_stats=cache.get_stats())


def invalidate_contract(cache: CalculationCache, contract_id: str) -> int:
    """Forget every cached calculation of a contract after it has been edited."""
    return cache.delete_contract(contract_id)
