"""
Test Configuration and Fixtures
===============================
Shared pytest fixtures for the pricing engine test suite.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pricing_engine.core.pricing_models import BinomialModel


@pytest.fixture
def hull_index_call():
    """Index option, Hull Example 14.1 (value 51.83)"""
    return dict(spot_price=930.0, strike_price=900.0, time_to_expiry=2.0 / 12.0,
                risk_free_rate=0.08, volatility=0.2, dividend_yield=0.03)


@pytest.fixture
def hull_greeks_params():
    """Index option used for the Greeks examples in Hull chapter 15"""
    return dict(spot_price=305.0, strike_price=300.0, time_to_expiry=4.0 / 12.0,
                risk_free_rate=0.08, volatility=0.25, dividend_yield=0.03)


@pytest.fixture
def hull_tree_params():
    """Non-dividend stock, Hull Example 17.1"""
    return dict(spot_price=50.0, strike_price=50.0, time_to_expiry=0.4167,
                risk_free_rate=0.1, volatility=0.4, dividend_yield=0.0)


@pytest.fixture
def binomial_model():
    return BinomialModel()


@pytest.fixture
def clean_pricing_env(monkeypatch):
    """Remove PRICING_* variables before and after a test"""
    for key in list(os.environ):
        if key.startswith("PRICING_"):
            monkeypatch.delenv(key)
    yield
    for key in list(os.environ):
        if key.startswith("PRICING_"):
            del os.environ[key]
