from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from leasecalc.app import create_app
from leasecalc.config import Settings
from leasecalc.core.cache import CalculationCache


class FakeClock:
    """Manually advanced time source for deterministic TTL tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def lease_payload(**overrides) -> dict:
    payload = {
        "title": "Forklift lease",
        "contract_value": 100000,
        "contract_term_months": 36,
        "implicit_interest_rate": 8.5,
        "guaranteed_residual_value": None,
        "lease_start_date": "2024-01-01",
        "payment_frequency": "monthly",
        "updated_at": "2024-01-01T09:30:00",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock):
    calculation_cache = CalculationCache(max_size=100, default_ttl=300.0, cleanup_interval=0, clock=clock)
    yield calculation_cache
    calculation_cache.destroy()


@pytest.fixture()
def app(cache: CalculationCache):
    return create_app(settings=Settings(), cache=cache)


@pytest.fixture()
def client(app) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
