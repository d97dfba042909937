"""
Input validation for the pricing models

Every public pricing entry point validates its inputs here before any
arithmetic, so callers get a typed InvalidParameterError instead of a
NaN or an infinite price.
"""

import math
from typing import Optional

from ..exceptions import InvalidParameterError

OPTION_TYPES = ("call", "put")
EXERCISE_STYLES = ("american", "european")


def _require_positive(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(name, value, "not a number") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidParameterError(name, value, "must be positive and finite")
    return value


def _require_finite(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(name, value, "not a number") from None
    if not math.isfinite(value):
        raise InvalidParameterError(name, value, "must be finite")
    return value


def validate_option_type(option_type: str) -> bool:
    """
    Normalise an option type string

    Returns:
        True for a call, False for a put
    """
    if not isinstance(option_type, str) or option_type.lower() not in OPTION_TYPES:
        raise InvalidParameterError("option_type", option_type, "expected 'call' or 'put'")
    return option_type.lower() == "call"


def validate_exercise_style(exercise_style: str) -> bool:
    """
    Normalise an exercise style string

    Returns:
        True for American exercise, False for European
    """
    if not isinstance(exercise_style, str) or exercise_style.lower() not in EXERCISE_STYLES:
        raise InvalidParameterError(
            "exercise_style", exercise_style, "expected 'american' or 'european'"
        )
    return exercise_style.lower() == "american"


def validate_option_inputs(
    underlying_price: float,
    strike_price: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: Optional[float] = None,
    dividend_yield: float = 0.0,
    underlying_name: str = "spot_price",
) -> tuple:
    """
    Validate the common pricing inputs

    Args:
        underlying_price: Spot or forward price, must be > 0
        strike_price: Must be > 0
        time_to_expiry: Year fraction, must be > 0
        risk_free_rate: Any finite value
        volatility: Must be > 0 (skipped when None, as for implied vol)
        dividend_yield: Any finite value
        underlying_name: Parameter name used in error messages

    Returns:
        Tuple (S, K, T, r, sigma, q) converted to float
    """
    S = _require_positive(underlying_name, underlying_price)
    K = _require_positive("strike_price", strike_price)
    T = _require_positive("time_to_expiry", time_to_expiry)
    r = _require_finite("risk_free_rate", risk_free_rate)
    sigma = None if volatility is None else _require_positive("volatility", volatility)
    q = _require_finite("dividend_yield", dividend_yield)
    return S, K, T, r, sigma, q


def validate_market_price(market_price: float) -> float:
    """Observed option price for implied volatility, must be > 0"""
    return _require_positive("market_price", market_price)
