"""
Greeks Calculator for Options

Collects the option Greeks from any pricing model in the package:
- Delta: Price sensitivity to underlying price changes
- Gamma: Delta sensitivity to underlying price changes
- Theta: Time decay
- Vega: Volatility sensitivity
- Rho: Interest rate sensitivity

Uses each model's own Greek formulas, or central finite differences of the
model price when numerical methods are requested.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from ..config import DEFAULT_CONFIG, PricingConfig
from .pricing_models import Black, OptionPrice

logger = logging.getLogger(__name__)


@dataclass
class Greeks:
    """Container for option Greeks"""
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'delta': self.delta,
            'gamma': self.gamma,
            'theta': self.theta,
            'vega': self.vega,
            'rho': self.rho,
        }

    def __repr__(self) -> str:
        return f"Greeks(Δ={self.delta:.4f}, Γ={self.gamma:.4f}, Θ={self.theta:.4f}, ν={self.vega:.4f}, ρ={self.rho:.4f})"


class GreeksCalculator:
    """
    Greeks calculator on top of a pricing model

    The model is BlackScholes, Black or a BinomialModel instance. Extra
    model arguments (dividend_yield, exercise_style) are passed through.
    """

    def __init__(self, model, use_numerical_methods: bool = False,
                 config: Optional[PricingConfig] = None):
        """
        Initialize Greeks calculator

        Args:
            model: Pricing model exposing price/delta/gamma/theta/vega/rho
            use_numerical_methods: Differentiate model.price numerically
                instead of calling the model's Greek methods
            config: Numerical settings, DEFAULT_CONFIG when omitted
        """
        self.model = model
        self.use_numerical_methods = use_numerical_methods
        self.config = config or DEFAULT_CONFIG

    @property
    def model_type(self) -> str:
        model = self.model if isinstance(self.model, type) else type(self.model)
        return model.__name__.lower()

    def calculate_greeks(
        self,
        underlying_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        **model_kwargs
    ) -> Greeks:
        """
        Calculate all Greeks for an option

        Args:
            underlying_price: Spot price (forward price for Black)
            strike_price: Option strike price
            time_to_expiry: Time to expiry in years
            risk_free_rate: Risk-free interest rate
            volatility: Volatility (annualized)
            option_type: 'call' or 'put'
            **model_kwargs: Extra model arguments

        Returns:
            Greeks object with all calculated values
        """
        args = (underlying_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        if self.use_numerical_methods:
            return Greeks(
                delta=self._calculate_delta_numerical(*args, option_type, **model_kwargs),
                gamma=self._calculate_gamma_numerical(*args, option_type, **model_kwargs),
                theta=self._calculate_theta_numerical(*args, option_type, **model_kwargs),
                vega=self._calculate_vega_numerical(*args, option_type, **model_kwargs),
                rho=self._calculate_rho_numerical(*args, option_type, **model_kwargs),
            )

        return Greeks(
            delta=self.model.delta(*args, option_type, **model_kwargs),
            gamma=self.model.gamma(*args, **model_kwargs),
            theta=self.model.theta(*args, option_type, **model_kwargs),
            vega=self.model.vega(*args, **model_kwargs),
            rho=self.model.rho(*args, option_type, **model_kwargs),
        )

    def price_option(
        self,
        underlying_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        **model_kwargs
    ) -> OptionPrice:
        """Price an option and attach its Greeks"""
        price = self.model.price(underlying_price, strike_price, time_to_expiry, risk_free_rate,
                                 volatility, option_type, **model_kwargs)
        greeks = self.calculate_greeks(underlying_price, strike_price, time_to_expiry, risk_free_rate,
                                       volatility, option_type, **model_kwargs)
        steps = getattr(self.model, 'time_steps', None)
        return OptionPrice(
            price=price,
            model_type=self.model_type,
            convergence_steps=steps if isinstance(steps, int) else None,
            **greeks.to_dict()
        )

    # Numerical Greek calculations (for validation)
    def _price(self, S, K, T, r, sigma, option_type, **model_kwargs) -> float:
        return self.model.price(S, K, T, r, sigma, option_type, **model_kwargs)

    def _calculate_delta_numerical(self, S, K, T, r, sigma, option_type, **kw) -> float:
        """Calculate Delta using central differences"""
        h = S * self.config.numerical_bump
        price_up = self._price(S + h, K, T, r, sigma, option_type, **kw)
        price_down = self._price(S - h, K, T, r, sigma, option_type, **kw)
        return (price_up - price_down) / (2 * h)

    def _calculate_gamma_numerical(self, S, K, T, r, sigma, option_type, **kw) -> float:
        """Calculate Gamma using central differences"""
        h = S * self.config.numerical_bump
        price_up = self._price(S + h, K, T, r, sigma, option_type, **kw)
        price_mid = self._price(S, K, T, r, sigma, option_type, **kw)
        price_down = self._price(S - h, K, T, r, sigma, option_type, **kw)
        return (price_up - 2 * price_mid + price_down) / (h ** 2)

    def _calculate_theta_numerical(self, S, K, T, r, sigma, option_type, **kw) -> float:
        """Calculate Theta as minus the maturity derivative (per year)"""
        h = min(T * self.config.numerical_bump, T / 2)
        price_longer = self._price(S, K, T + h, r, sigma, option_type, **kw)
        price_shorter = self._price(S, K, T - h, r, sigma, option_type, **kw)
        return -(price_longer - price_shorter) / (2 * h)

    def _calculate_vega_numerical(self, S, K, T, r, sigma, option_type, **kw) -> float:
        """Calculate Vega using central differences"""
        h = sigma * self.config.numerical_bump
        price_up = self._price(S, K, T, r, sigma + h, option_type, **kw)
        price_down = self._price(S, K, T, r, sigma - h, option_type, **kw)
        return (price_up - price_down) / (2 * h)

    def _calculate_rho_numerical(self, S, K, T, r, sigma, option_type, **kw) -> float:
        """Calculate Rho using central differences"""
        h = self.config.numerical_bump
        price_up = self._price(S, K, T, r + h, sigma, option_type, **kw)
        price_down = self._price(S, K, T, r - h, sigma, option_type, **kw)
        return (price_up - price_down) / (2 * h)

    def calculate_portfolio_greeks(self, positions: Iterable[Mapping]) -> Greeks:
        """
        Calculate aggregate Greeks for a portfolio of options

        Args:
            positions: Dicts with keys quantity, underlying_price (or
                spot_price / forward_price), strike_price, time_to_expiry,
                risk_free_rate, volatility, option_type and optionally
                dividend_yield

        Returns:
            Aggregate Greeks for the portfolio
        """
        total = dict.fromkeys(('delta', 'gamma', 'theta', 'vega', 'rho'), 0.0)

        for position in positions:
            quantity = position.get('quantity', 0)
            if quantity == 0:
                continue

            underlying = position.get('underlying_price',
                                      position.get('forward_price', position.get('spot_price')))
            model_kwargs = {}
            if 'dividend_yield' in position and self.model is not Black:
                model_kwargs['dividend_yield'] = position['dividend_yield']

            greeks = self.calculate_greeks(
                underlying,
                position['strike_price'],
                position['time_to_expiry'],
                position['risk_free_rate'],
                position['volatility'],
                position.get('option_type', 'call'),
                **model_kwargs
            )

            for name, value in greeks.to_dict().items():
                total[name] += value * quantity

        logger.debug(f"Portfolio Greeks: {total}")
        return Greeks(**total)
