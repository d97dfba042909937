"""
Tests for the Black-Scholes-Merton spot model.

Reference values are the worked examples in Hull, "Options, Futures,
and Other Derivatives" (6th ed.).
"""

import math

import pytest

from pricing_engine.core.pricing_models import BlackScholes
from pricing_engine.exceptions import InvalidParameterError, PricingError


def _without(params, *keys):
    return {k: v for k, v in params.items() if k not in keys}


class TestHullExamples:

    def test_index_call_value(self, hull_index_call):
        assert BlackScholes.price(**hull_index_call, option_type='call') == pytest.approx(51.83, abs=0.01)

    def test_put_theta(self, hull_greeks_params):
        theta = BlackScholes.theta(**hull_greeks_params, option_type='put')
        assert theta == pytest.approx(-18.1528, abs=0.01)

    def test_vega(self, hull_greeks_params):
        assert BlackScholes.vega(**hull_greeks_params) == pytest.approx(66.4479, abs=0.01)

    def test_gamma(self, hull_greeks_params):
        assert BlackScholes.gamma(**hull_greeks_params) == pytest.approx(0.00857161, abs=1e-5)

    def test_put_rho(self, hull_greeks_params):
        assert BlackScholes.rho(**hull_greeks_params, option_type='put') == pytest.approx(-42.5792, abs=0.01)

    def test_fx_call_value(self):
        # Option on sterling: yield is the GBP rate, rate the USD rate
        value = BlackScholes.price(spot_price=1.6, strike_price=1.6, time_to_expiry=1.0 / 3.0,
                                   risk_free_rate=0.08, volatility=0.20, option_type='call',
                                   dividend_yield=0.11)
        assert value == pytest.approx(0.0638857, abs=0.01)
        assert value == pytest.approx(0.0639, abs=1e-4)


class TestPutCallParity:

    @pytest.mark.parametrize("S,K,sigma,r,T,q", [
        (930.0, 900.0, 0.2, 0.08, 2.0 / 12.0, 0.03),
        (100.0, 120.0, 0.35, 0.01, 2.0, 0.0),
        (50.0, 40.0, 0.15, -0.005, 0.25, 0.04),
        (1.6, 1.6, 0.2, 0.08, 1.0 / 3.0, 0.11),
    ])
    def test_parity(self, S, K, sigma, r, T, q):
        call = BlackScholes.price(S, K, T, r, sigma, 'call', q)
        put = BlackScholes.price(S, K, T, r, sigma, 'put', q)
        assert call - put == pytest.approx(S * math.exp(-q * T) - K * math.exp(-r * T), abs=1e-6)


class TestGreekRelations:

    def test_delta_call_minus_put(self, hull_greeks_params):
        call = BlackScholes.delta(**hull_greeks_params, option_type='call')
        put = BlackScholes.delta(**hull_greeks_params, option_type='put')
        T, q = hull_greeks_params['time_to_expiry'], hull_greeks_params['dividend_yield']
        assert call - put == pytest.approx(math.exp(-q * T), rel=1e-12)
        assert 0.0 < call < 1.0
        assert -1.0 < put < 0.0

    def test_rho_signs(self, hull_greeks_params):
        assert BlackScholes.rho(**hull_greeks_params, option_type='call') > 0
        assert BlackScholes.rho(**hull_greeks_params, option_type='put') < 0

    def test_option_type_case_insensitive(self, hull_index_call):
        assert BlackScholes.price(**hull_index_call, option_type='CALL') == \
            BlackScholes.price(**hull_index_call, option_type='call')

    def test_yield_defaults_to_zero(self, hull_index_call):
        params = _without(hull_index_call, 'dividend_yield')
        assert BlackScholes.price(**params) == BlackScholes.price(**params, dividend_yield=0.0)

    def test_call_is_default(self, hull_index_call):
        assert BlackScholes.price(**hull_index_call) == BlackScholes.price(**hull_index_call, option_type='call')


class TestValidation:

    @pytest.mark.parametrize("field,value", [
        ('spot_price', 0.0),
        ('spot_price', -930.0),
        ('strike_price', 0.0),
        ('volatility', 0.0),
        ('volatility', -0.2),
        ('time_to_expiry', 0.0),
        ('risk_free_rate', float('nan')),
        ('dividend_yield', float('inf')),
        ('spot_price', 'abc'),
    ])
    def test_invalid_inputs(self, hull_index_call, field, value):
        params = dict(hull_index_call, **{field: value})
        with pytest.raises(InvalidParameterError) as exc_info:
            BlackScholes.price(**params)
        assert exc_info.value.parameter == field

    def test_invalid_option_type(self, hull_index_call):
        with pytest.raises(InvalidParameterError):
            BlackScholes.delta(**hull_index_call, option_type='straddle')

    def test_errors_are_pricing_and_value_errors(self, hull_index_call):
        params = dict(hull_index_call, strike_price=-1.0)
        with pytest.raises(PricingError):
            BlackScholes.vega(**params)
        with pytest.raises(ValueError):
            BlackScholes.gamma(**params)

    def test_negative_rate_allowed(self, hull_index_call):
        params = dict(hull_index_call, risk_free_rate=-0.01)
        assert BlackScholes.price(**params) > 0
