"""
Option Pricing Engine

Prices European and American options and their Greeks with three
classical models (see Hull, "Options, Futures, and Other Derivatives"):

1) Black-Scholes-Merton model (spot price with continuous yield)
2) Black model (forward price)
3) Cox-Ross-Rubinstein binomial tree (American or European exercise)

Modules:
- core: grid, normal distribution, pricing models, Greeks calculator
- config: numerical settings with environment overrides
- exceptions: typed errors raised at the public boundary
"""

__version__ = "1.0.0"

from .config import DEFAULT_CONFIG, PricingConfig
from .exceptions import (
    DimensionMismatchError,
    InvalidLatticeProbabilityError,
    InvalidParameterError,
    NonConvergenceError,
    PricingError,
)
from .core.grid import Grid
from .core.pricing_models import (
    Black,
    BlackScholes,
    BinomialModel,
    ImpliedVolatilityCalculator,
    ImpliedVolResult,
    OptionPrice,
)
from .core.greeks_calculator import Greeks, GreeksCalculator

__all__ = [
    'DEFAULT_CONFIG',
    'PricingConfig',
    'PricingError',
    'InvalidParameterError',
    'DimensionMismatchError',
    'InvalidLatticeProbabilityError',
    'NonConvergenceError',
    'Grid',
    'Black',
    'BlackScholes',
    'BinomialModel',
    'ImpliedVolatilityCalculator',
    'ImpliedVolResult',
    'OptionPrice',
    'Greeks',
    'GreeksCalculator',
]
