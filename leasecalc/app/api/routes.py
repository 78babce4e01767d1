"""HTTP routes for the Flask API."""

from __future__ import annotations

import datetime as dt
import logging
from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from leasecalc.core.cache import CalculationCache
from leasecalc.core.engine import balances_as_of, paginate_schedule
from leasecalc.core.service import calculate_with_cache, invalidate_contract
from leasecalc.domain.validation import ComputationError, LeaseValidationError
from leasecalc.schemas.lease import LeaseContract

logger = logging.getLogger(__name__)

CACHE_EXTENSION = "leasecalc.cache"

api_bp = Blueprint("api", __name__)


def _cache() -> CalculationCache:
    return current_app.extensions[CACHE_EXTENSION]


def _load_contract() -> LeaseContract:
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    return LeaseContract.model_validate(raw_payload)


class _BadQuery(ValueError):
    pass


def _int_arg(name: str, default: int) -> int:
    value = request.args.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise _BadQuery(f"{name} must be an integer") from None


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return jsonify({"detail": exc.errors()}), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.errorhandler(LeaseValidationError)
def _handle_lease_validation_error(exc: LeaseValidationError):
    return (
        jsonify({"error": "Invalid contract data for IFRS 16 calculations", "details": exc.errors}),
        HTTPStatus.BAD_REQUEST,
    )


@api_bp.errorhandler(_BadQuery)
def _handle_bad_query(exc: _BadQuery):
    return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(ComputationError)
def _handle_computation_error(exc: ComputationError):
    logger.exception("IFRS 16 calculation failed")
    return jsonify({"error": "Calculation failed"}), HTTPStatus.INTERNAL_SERVER_ERROR


@api_bp.post("/contracts/<contract_id>/calculate")
def calculate(contract_id: str) -> Any:
    """Calculate (or serve from cache) the IFRS 16 figures of a contract.

    ``?period=N`` or ``?as_of=YYYY-MM-DD`` moves the current balances to that
    point of the schedule.
    """
    contract = _load_contract()
    outcome = calculate_with_cache(_cache(), contract_id, contract)

    result = outcome.result
    as_of = request.args.get("as_of")
    if as_of is not None:
        try:
            as_of_date = dt.date.fromisoformat(as_of)
        except ValueError:
            raise _BadQuery("as_of must be an ISO-8601 date") from None
        result = balances_as_of(result, as_of_date)
    elif "period" in request.args:
        result = balances_as_of(result, _int_arg("period", 1))

    return jsonify(
        {
            "contract_id": contract_id,
            "calculation": result.model_dump(mode="json"),
            "cached": outcome.cached,
            "cache_stats": outcome.cache_stats.model_dump(),
        }
    )


@api_bp.post("/contracts/<contract_id>/amortization")
def amortization(contract_id: str) -> Any:
    """Paginated amortization schedule of a contract."""
    contract = _load_contract()
    page = _int_arg("page", 1)
    limit = _int_arg("limit", current_app.config["SCHEDULE_PAGE_SIZE"])
    if page < 1 or limit < 1:
        raise _BadQuery("page and limit must be positive")

    outcome = calculate_with_cache(_cache(), contract_id, contract)
    return jsonify(paginate_schedule(outcome.result, page, limit).model_dump(mode="json"))


@api_bp.get("/cache/ifrs16")
def cache_stats() -> Any:
    """Cache statistics and the list of stored entries."""
    cache = _cache()
    entries = cache.get_cache_info()
    valid = sum(1 for entry in entries if entry.is_valid)
    return jsonify(
        {
            "stats": cache.get_stats().model_dump(),
            "cache_entries": [entry.model_dump() for entry in entries],
            "total_entries": len(entries),
            "valid_entries": valid,
            "expired_entries": len(entries) - valid,
        }
    )


@api_bp.delete("/cache/ifrs16")
def cache_clear() -> Any:
    """Clear one contract's entries (``?contract_id=``) or the whole cache."""
    cache = _cache()
    contract_id = request.args.get("contract_id")

    if contract_id:
        deleted = invalidate_contract(cache, contract_id)
        return jsonify(
            {"message": f"Cache cleared for contract {contract_id}", "deleted_entries": deleted}
        )

    previous = cache.get_stats()
    cache.clear()
    return jsonify({"message": "All cache cleared", "previous_stats": previous.model_dump()})


@api_bp.post("/cache/ifrs16")
def cache_action() -> Any:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or payload.get("action") != "cleanup":
        return jsonify({"error": "Invalid action"}), HTTPStatus.BAD_REQUEST

    cache = _cache()
    cleaned = cache.cleanup()
    return jsonify(
        {
            "message": "Cache cleanup completed",
            "cleaned_entries": cleaned,
            "current_stats": cache.get_stats().model_dump(),
        }
    )
