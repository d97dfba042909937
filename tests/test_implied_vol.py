"""
Tests for the Newton-Raphson implied volatility solver.
"""

import pytest

from pricing_engine.config import PricingConfig
from pricing_engine.core.pricing_models import (
    Black,
    BlackScholes,
    ImpliedVolatilityCalculator,
    ImpliedVolResult,
)
from pricing_engine.exceptions import InvalidParameterError, NonConvergenceError


class TestSpotImpliedVol:

    @pytest.mark.parametrize("vol", [0.1, 0.2, 0.45, 0.8])
    def test_round_trip_call(self, hull_index_call, vol):
        params = dict(hull_index_call, volatility=vol)
        market = BlackScholes.price(**params)
        implied = BlackScholes.implied_vol(
            market, params['spot_price'], params['strike_price'], params['time_to_expiry'],
            params['risk_free_rate'], dividend_yield=params['dividend_yield'])
        assert implied == pytest.approx(vol, abs=1e-6)

    def test_round_trip_put(self, hull_greeks_params):
        market = BlackScholes.price(**hull_greeks_params, option_type='put')
        p = hull_greeks_params
        implied = BlackScholes.implied_vol(market, p['spot_price'], p['strike_price'], p['time_to_expiry'],
                                           p['risk_free_rate'], option_type='put',
                                           dividend_yield=p['dividend_yield'])
        assert implied == pytest.approx(p['volatility'], abs=1e-6)

    def test_price_above_upper_bound_fails(self, hull_index_call):
        p = hull_index_call
        with pytest.raises(NonConvergenceError) as exc_info:
            BlackScholes.implied_vol(1000.0, p['spot_price'], p['strike_price'], p['time_to_expiry'],
                                     p['risk_free_rate'], dividend_yield=p['dividend_yield'])
        result = exc_info.value.result
        assert isinstance(result, ImpliedVolResult)
        assert result.converged is False
        assert result.message

    def test_invalid_market_price(self, hull_index_call):
        p = hull_index_call
        with pytest.raises(InvalidParameterError):
            BlackScholes.implied_vol(0.0, p['spot_price'], p['strike_price'], p['time_to_expiry'],
                                     p['risk_free_rate'])

    def test_long_dated_low_vol_recovers_from_overshoot(self):
        # First Newton step from 0.5 lands below zero
        market = BlackScholes.price(100.0, 100.0, 10.0, 0.0, 0.05)
        result = ImpliedVolatilityCalculator(BlackScholes).solve(market, 100.0, 100.0, 10.0, 0.0)
        assert result.converged is True
        assert result.volatility == pytest.approx(0.05, abs=1e-8)
        assert BlackScholes.implied_vol(market, 100.0, 100.0, 10.0, 0.0) == pytest.approx(0.05, abs=1e-8)

    def test_non_numeric_market_price(self, hull_index_call):
        p = hull_index_call
        with pytest.raises(InvalidParameterError) as exc_info:
            BlackScholes.implied_vol("ten", p['spot_price'], p['strike_price'], p['time_to_expiry'],
                                     p['risk_free_rate'])
        assert exc_info.value.parameter == "market_price"


class TestForwardImpliedVol:

    def test_round_trip(self):
        market = Black.price(20.0, 20.0, 4.0 / 12.0, 0.09, 0.25, 'put')
        implied = Black.implied_vol(market, 20.0, 20.0, 4.0 / 12.0, 0.09, option_type='put')
        assert implied == pytest.approx(0.25, abs=1e-6)

    def test_round_trip_out_of_the_money_call(self):
        market = Black.price(100.0, 110.0, 1.0, 0.03, 0.3, 'call')
        assert Black.implied_vol(market, 100.0, 110.0, 1.0, 0.03) == pytest.approx(0.3, abs=1e-6)


class TestSolverResult:

    def test_converged_result(self, hull_index_call):
        p = hull_index_call
        market = BlackScholes.price(**p)
        result = ImpliedVolatilityCalculator(BlackScholes).solve(
            market, p['spot_price'], p['strike_price'], p['time_to_expiry'], p['risk_free_rate'],
            dividend_yield=p['dividend_yield'])
        assert result.converged is True
        assert abs(result.residual) < 1e-10
        assert 1 <= result.iterations <= 100
        assert result.volatility == pytest.approx(0.2, abs=1e-6)

    def test_iteration_cap_reported(self, hull_index_call):
        p = hull_index_call
        market = BlackScholes.price(**p)
        solver = ImpliedVolatilityCalculator(BlackScholes, PricingConfig(iv_max_iterations=1))
        result = solver.solve(market, p['spot_price'], p['strike_price'], p['time_to_expiry'],
                              p['risk_free_rate'], dividend_yield=p['dividend_yield'])
        assert result.converged is False
        assert result.iterations == 1
        assert "1 iterations" in result.message
        assert result.volatility == PricingConfig().iv_initial_guess
        assert result.residual == pytest.approx(
            BlackScholes.price(**dict(p, volatility=result.volatility)) - market)

    def test_initial_guess_returned_when_already_converged(self, hull_index_call):
        p = dict(hull_index_call, volatility=0.5)
        market = BlackScholes.price(**p)
        result = ImpliedVolatilityCalculator(BlackScholes).solve(
            market, p['spot_price'], p['strike_price'], p['time_to_expiry'], p['risk_free_rate'],
            dividend_yield=p['dividend_yield'])
        assert result.converged is True
        assert result.iterations == 1
        assert result.volatility == 0.5

    def test_vanishing_vega_reported(self):
        # Deep in-the-money call with tiny time value: vega underflows at the guess
        solver = ImpliedVolatilityCalculator(Black, PricingConfig(iv_initial_guess=0.01, iv_min_vega=1e-6))
        result = solver.solve(95.0, 1000.0, 100.0, 0.01, 0.0)
        assert result.converged is False
        assert "vega" in result.message

    def test_invalid_option_type(self, hull_index_call):
        p = hull_index_call
        with pytest.raises(InvalidParameterError):
            ImpliedVolatilityCalculator(BlackScholes).solve(
                10.0, p['spot_price'], p['strike_price'], p['time_to_expiry'], p['risk_free_rate'],
                option_type='digital')
