"""
Core Pricing Infrastructure

This module provides the numerical components of the engine:
- Resizable 2D grid used by the lattice model
- Cumulative normal distribution and density
- Black-Scholes-Merton and Black closed-form models
- Cox-Ross-Rubinstein binomial lattice with American exercise
- Newton-Raphson implied volatility solver
- Greeks containers and calculator
"""

from .grid import Grid
from .distributions import N, DN
from .pricing_models import (
    Black,
    BlackScholes,
    BinomialModel,
    ImpliedVolatilityCalculator,
    ImpliedVolResult,
    OptionPrice,
)
from .greeks_calculator import Greeks, GreeksCalculator

__all__ = [
    'Grid',
    'N',
    'DN',
    'Black',
    'BlackScholes',
    'BinomialModel',
    'ImpliedVolatilityCalculator',
    'ImpliedVolResult',
    'OptionPrice',
    'Greeks',
    'GreeksCalculator',
]
