"""
Options Pricing Models

Implementation of the pricing models used by the engine:
- Black-Scholes-Merton model (spot price with continuous yield)
- Black model (forward price)
- Binomial/Cox-Ross-Rubinstein model with American early exercise
- Newton-Raphson implied volatility calculation

Formulas follow Hull, "Options, Futures, and Other Derivatives" (6th ed.):
Black-Scholes p. 314, Greeks ch. 15, CRR tree p. 393.
"""

import math
import threading
from dataclasses import dataclass
from typing import Optional, Tuple
import logging

import numpy as np

from ..config import DEFAULT_CONFIG, PricingConfig
from ..exceptions import (
    InvalidLatticeProbabilityError,
    InvalidParameterError,
    NonConvergenceError,
)
from .distributions import DN, N
from .grid import Grid
from .validators import (
    validate_exercise_style,
    validate_market_price,
    validate_option_inputs,
    validate_option_type,
)

logger = logging.getLogger(__name__)


@dataclass
class OptionPrice:
    """Container for option pricing results"""
    price: float
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    rho: Optional[float] = None

    # Model-specific information
    model_type: str = "unknown"
    convergence_steps: Optional[int] = None


@dataclass
class ImpliedVolResult:
    """Outcome of an implied volatility solve"""
    volatility: float
    iterations: int
    converged: bool
    residual: float
    message: str = ""


class BlackScholes:
    """
    Black-Scholes-Merton option pricing model

    Prices European options on a spot price paying a continuous yield, e.g.
    equity options (yield = dividend yield) or FX options (yield = foreign
    risk-free rate).
    """

    @staticmethod
    def _calculate_d_values(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> Tuple[float, float]:
        """Calculate d1 and d2 values"""
        term = sigma * math.sqrt(T)

        d1 = (math.log(S / K) + (r - q + (sigma * sigma) / 2.0) * T) / term
        d2 = d1 - term

        return d1, d2

    @staticmethod
    def price(
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0
    ) -> float:
        """
        Calculate Black-Scholes option price

        Args:
            spot_price: Current underlying price
            strike_price: Option strike price
            time_to_expiry: Time to expiry in years
            risk_free_rate: Risk-free interest rate (continuously compounded)
            volatility: Volatility (annualized)
            option_type: 'call' or 'put'
            dividend_yield: Continuous yield of the underlying (annualized)

        Returns:
            Option price
        """
        is_call = validate_option_type(option_type)
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )

        d1, d2 = BlackScholes._calculate_d_values(S, K, T, r, sigma, q)
        forward_leg = S * math.exp(-q * T)
        strike_leg = K * math.exp(-r * T)

        if is_call:
            return forward_leg * N(d1) - strike_leg * N(d2)
        return strike_leg * N(-d2) - forward_leg * N(-d1)

    @staticmethod
    def delta(
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0
    ) -> float:
        """Calculate option Delta"""
        is_call = validate_option_type(option_type)
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )

        d1, _ = BlackScholes._calculate_d_values(S, K, T, r, sigma, q)

        if is_call:
            return math.exp(-q * T) * N(d1)
        return math.exp(-q * T) * (N(d1) - 1.0)

    @staticmethod
    def gamma(
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        dividend_yield: float = 0.0
    ) -> float:
        """Calculate option Gamma (same for calls and puts)"""
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )

        d1, _ = BlackScholes._calculate_d_values(S, K, T, r, sigma, q)
        return (DN(d1) * math.exp(-q * T)) / (S * sigma * math.sqrt(T))

    @staticmethod
    def theta(
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0
    ) -> float:
        """Calculate option Theta (per year)"""
        is_call = validate_option_type(option_type)
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )

        d1, d2 = BlackScholes._calculate_d_values(S, K, T, r, sigma, q)
        yield_discount = math.exp(-q * T)
        rate_discount = math.exp(-r * T)

        term = (S * DN(d1) * sigma * yield_discount) / (2.0 * math.sqrt(T))

        if is_call:
            return -term + q * S * N(d1) * yield_discount - r * K * rate_discount * N(d2)
        return -term - q * S * N(-d1) * yield_discount + r * K * rate_discount * N(-d2)

    @staticmethod
    def rho(
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0
    ) -> float:
        """Calculate option Rho"""
        is_call = validate_option_type(option_type)
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )

        _, d2 = BlackScholes._calculate_d_values(S, K, T, r, sigma, q)

        if is_call:
            return K * T * math.exp(-r * T) * N(d2)
        return -K * T * math.exp(-r * T) * N(-d2)

    @staticmethod
    def vega(
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        dividend_yield: float = 0.0
    ) -> float:
        """Calculate option Vega (same for calls and puts)"""
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )

        d1, _ = BlackScholes._calculate_d_values(S, K, T, r, sigma, q)
        return S * math.sqrt(T) * DN(d1) * math.exp(-q * T)

    @staticmethod
    def implied_vol(
        market_price: float,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0,
        config: Optional[PricingConfig] = None
    ) -> float:
        """
        Volatility at which the Black-Scholes price equals market_price

        Raises:
            NonConvergenceError: if Newton-Raphson fails to converge
        """
        solver = ImpliedVolatilityCalculator(BlackScholes, config)
        result = solver.solve(
            market_price, spot_price, strike_price, time_to_expiry, risk_free_rate,
            option_type, dividend_yield=dividend_yield
        )
        if not result.converged:
            raise NonConvergenceError(result)
        return result.volatility


class Black:
    """
    Black (1976) forward option pricing model

    Prices European options on a forward or futures price. The rate only
    enters through discounting; there is no separate yield term.
    """

    @staticmethod
    def _calculate_d_values(F: float, K: float, T: float, sigma: float) -> Tuple[float, float]:
        """Calculate d1 and d2 values"""
        term = sigma * math.sqrt(T)

        d1 = (math.log(F / K) + ((sigma * sigma) / 2.0) * T) / term
        d2 = d1 - term

        return d1, d2

    @staticmethod
    def _validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility):
        F, K, T, r, sigma, _ = validate_option_inputs(
            forward_price, strike_price, time_to_expiry, risk_free_rate, volatility,
            underlying_name="forward_price"
        )
        return F, K, T, r, sigma

    @staticmethod
    def price(
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call'
    ) -> float:
        """
        Calculate Black option price

        Args:
            forward_price: Forward price of the underlying
            strike_price: Option strike price
            time_to_expiry: Time to expiry in years
            risk_free_rate: Risk-free interest rate used for discounting
            volatility: Volatility of the forward (annualized)
            option_type: 'call' or 'put'

        Returns:
            Option price
        """
        is_call = validate_option_type(option_type)
        F, K, T, r, sigma = Black._validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        d1, d2 = Black._calculate_d_values(F, K, T, sigma)
        discount = math.exp(-r * T)

        if is_call:
            return discount * (F * N(d1) - K * N(d2))
        return discount * (K * N(-d2) - F * N(-d1))

    @staticmethod
    def delta(
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call'
    ) -> float:
        """Calculate option Delta with respect to the forward price"""
        is_call = validate_option_type(option_type)
        F, K, T, r, sigma = Black._validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        d1, _ = Black._calculate_d_values(F, K, T, sigma)

        if is_call:
            return math.exp(-r * T) * N(d1)
        return math.exp(-r * T) * (N(d1) - 1.0)

    @staticmethod
    def gamma(
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float
    ) -> float:
        """Calculate option Gamma (same for calls and puts)"""
        F, K, T, r, sigma = Black._validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        d1, _ = Black._calculate_d_values(F, K, T, sigma)
        return math.exp(-r * T) * DN(d1) / (F * sigma * math.sqrt(T))

    @staticmethod
    def theta(
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call'
    ) -> float:
        """Calculate option Theta (per year)"""
        is_call = validate_option_type(option_type)
        F, K, T, r, sigma = Black._validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        d1, d2 = Black._calculate_d_values(F, K, T, sigma)
        discount = math.exp(-r * T)

        term = (F * discount * DN(d1) * sigma) / (2.0 * math.sqrt(T))

        if is_call:
            return -term + r * F * discount * N(d1) - r * K * discount * N(d2)
        return -term - r * F * discount * N(-d1) + r * K * discount * N(-d2)

    @staticmethod
    def rho(
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call'
    ) -> float:
        """Calculate option Rho"""
        is_call = validate_option_type(option_type)
        F, K, T, r, sigma = Black._validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        _, d2 = Black._calculate_d_values(F, K, T, sigma)

        if is_call:
            return K * T * math.exp(-r * T) * N(d2)
        return -K * T * math.exp(-r * T) * N(-d2)

    @staticmethod
    def vega(
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float
    ) -> float:
        """Calculate option Vega (same for calls and puts)"""
        F, K, T, r, sigma = Black._validate(forward_price, strike_price, time_to_expiry, risk_free_rate, volatility)

        d1, _ = Black._calculate_d_values(F, K, T, sigma)
        return F * math.exp(-r * T) * math.sqrt(T) * DN(d1)

    @staticmethod
    def implied_vol(
        market_price: float,
        forward_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        option_type: str = 'call',
        config: Optional[PricingConfig] = None
    ) -> float:
        """
        Volatility at which the Black price equals market_price

        Raises:
            NonConvergenceError: if Newton-Raphson fails to converge
        """
        solver = ImpliedVolatilityCalculator(Black, config)
        result = solver.solve(
            market_price, forward_price, strike_price, time_to_expiry, risk_free_rate, option_type
        )
        if not result.converged:
            raise NonConvergenceError(result)
        return result.volatility


class BinomialModel:
    """
    Binomial (Cox-Ross-Rubinstein) option pricing model

    Prices American options by default and European options on request.
    The asset-price and option-value trees live in two grids owned by the
    instance and are overwritten by every pricing call. A re-entrant lock
    serialises callers sharing one instance.

    Greeks are read off the nodes of a fresh tree (delta, gamma, theta) or
    taken as one-sided finite differences (rho, vega). Gamma and vega are
    always computed for a call.
    """

    def __init__(self, steps: Optional[int] = None, config: Optional[PricingConfig] = None):
        """
        Initialize binomial model

        Args:
            steps: Number of time steps (the tree also has a level for today)
            config: Numerical settings, DEFAULT_CONFIG when omitted
        """
        self.config = config or DEFAULT_CONFIG
        self._lock = threading.RLock()
        self._step_number = 0
        self._asset_tree = Grid()
        self._value_tree = Grid()
        self.time_steps = self.config.lattice_steps if steps is None else steps

    @property
    def time_steps(self) -> int:
        """Number of time steps to maturity"""
        return self._step_number - 1

    @time_steps.setter
    def time_steps(self, steps: int) -> None:
        if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)) or steps < 1:
            raise InvalidParameterError("time_steps", steps, "must be an integer >= 1")
        with self._lock:
            self._step_number = int(steps) + 1
            self._asset_tree.resize(self._step_number, self._step_number, 0.0)
            self._value_tree.resize(self._step_number, self._step_number, 0.0)

    @property
    def asset_tree(self) -> Grid:
        """Copy of the asset-price tree from the last pricing call"""
        with self._lock:
            return self._asset_tree.copy()

    @property
    def value_tree(self) -> Grid:
        """Copy of the option-value tree from the last pricing call"""
        with self._lock:
            return self._value_tree.copy()

    @staticmethod
    def _intrinsic_value(spot, strike: float, is_call: bool):
        """Calculate intrinsic value (scalar or array)"""
        if is_call:
            return np.maximum(spot - strike, 0.0)
        return np.maximum(strike - spot, 0.0)

    def _lattice_parameters(self, T: float, r: float, sigma: float, q: float) -> Tuple[float, float, float, float]:
        dt = T / (self._step_number - 1)
        sqrt_dt = math.sqrt(dt)
        u = math.exp(sigma * sqrt_dt)
        d = math.exp(-sigma * sqrt_dt)
        a = math.exp((r - q) * dt)
        p = (a - d) / (u - d)

        logger.debug(f"CRR lattice: steps={self._step_number - 1}, dt={dt:.6f}, u={u:.6f}, d={d:.6f}, p={p:.6f}")

        if not 0.0 <= p <= 1.0:
            logger.warning(f"CRR probability {p:.6f} outside [0, 1] for sigma={sigma}, r={r}, q={q}, dt={dt:.6f}")
            raise InvalidLatticeProbabilityError(p, u, d, a)

        return dt, u, d, p

    def _build(self, S: float, K: float, T: float, r: float, sigma: float, q: float,
               is_call: bool, american: bool) -> Tuple[float, float, float, float]:
        """Fill both trees and return (value, dt, u, d)"""
        dt, u, d, p = self._lattice_parameters(T, r, sigma, q)
        n_levels = self._step_number
        s = self._asset_tree.data
        v = self._value_tree.data

        # Node [m][n]: n up-moves and m - n down-moves after m steps
        s[0, 0] = S
        for m in range(1, n_levels):
            s[m, 1:m + 1] = u * s[m - 1, 0:m]
            s[m, 0] = d * s[m - 1, 0]

        last = n_levels - 1
        v[last, :] = self._intrinsic_value(s[last, :], K, is_call)

        discount = math.exp(-r * dt)
        for m in range(n_levels - 2, -1, -1):
            hold = ((1.0 - p) * v[m + 1, 0:m + 1]) + (p * v[m + 1, 1:m + 2])
            hold *= discount
            if american:
                v[m, 0:m + 1] = np.maximum(hold, self._intrinsic_value(s[m, 0:m + 1], K, is_call))
            else:
                v[m, 0:m + 1] = hold

        return float(v[0, 0]), dt, u, d

    def _inputs(self, spot_price, strike_price, time_to_expiry, risk_free_rate, volatility,
                option_type, dividend_yield, exercise_style):
        is_call = validate_option_type(option_type)
        american = validate_exercise_style(exercise_style)
        S, K, T, r, sigma, q = validate_option_inputs(
            spot_price, strike_price, time_to_expiry, risk_free_rate, volatility, dividend_yield
        )
        return S, K, T, r, sigma, q, is_call, american

    def _require_levels(self, levels: int, greek: str) -> None:
        if self._step_number <= levels:
            raise InvalidParameterError(
                "time_steps", self.time_steps, f"{greek} needs at least {levels} time steps"
            )

    def price(
        self,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0,
        exercise_style: str = 'american'
    ) -> float:
        """
        Price option using the CRR lattice

        Args:
            spot_price: Current underlying price
            strike_price: Option strike price
            time_to_expiry: Time to expiry in years
            risk_free_rate: Risk-free interest rate
            volatility: Volatility (annualized)
            option_type: 'call' or 'put'
            dividend_yield: Continuous yield of the underlying (annualized)
            exercise_style: 'american' or 'european'

        Returns:
            Option price

        Raises:
            InvalidLatticeProbabilityError: if the up probability leaves [0, 1]
        """
        args = self._inputs(spot_price, strike_price, time_to_expiry, risk_free_rate,
                            volatility, option_type, dividend_yield, exercise_style)
        with self._lock:
            value, _, _, _ = self._build(*args)
        return value

    def delta(
        self,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0,
        exercise_style: str = 'american'
    ) -> float:
        """Delta from the two nodes after the first step"""
        args = self._inputs(spot_price, strike_price, time_to_expiry, risk_free_rate,
                            volatility, option_type, dividend_yield, exercise_style)
        S = args[0]
        with self._lock:
            _, _, u, d = self._build(*args)
            v = self._value_tree.data
            return float((v[1, 1] - v[1, 0]) / ((S * u) - (S * d)))

    def gamma(
        self,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        dividend_yield: float = 0.0,
        exercise_style: str = 'american'
    ) -> float:
        """Gamma from the three nodes after the second step (priced as a call)"""
        args = self._inputs(spot_price, strike_price, time_to_expiry, risk_free_rate,
                            volatility, 'call', dividend_yield, exercise_style)
        S = args[0]
        with self._lock:
            self._require_levels(2, "gamma")
            _, _, u, d = self._build(*args)
            v = self._value_tree.data

            h = 0.5 * ((S * u * u) - (S * d * d))
            delta1 = (v[2, 2] - v[2, 1]) / ((S * u * u) - S)
            delta2 = (v[2, 1] - v[2, 0]) / (S - (S * d * d))
            return float((delta1 - delta2) / h)

    def theta(
        self,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0,
        exercise_style: str = 'american'
    ) -> float:
        """Theta from the middle node two steps ahead (per year)"""
        args = self._inputs(spot_price, strike_price, time_to_expiry, risk_free_rate,
                            volatility, option_type, dividend_yield, exercise_style)
        with self._lock:
            self._require_levels(2, "theta")
            _, dt, _, _ = self._build(*args)
            v = self._value_tree.data
            return float((v[2, 1] - v[0, 0]) / (2.0 * dt))

    def rho(
        self,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        option_type: str = 'call',
        dividend_yield: float = 0.0,
        exercise_style: str = 'american'
    ) -> float:
        """
        Rho as (base - bumped) / bump, scaled per 1% rate move

        Note the sign: the difference is taken as base minus bumped.
        """
        bump = self.config.rate_bump
        with self._lock:
            f0 = self.price(spot_price, strike_price, time_to_expiry, risk_free_rate, volatility,
                            option_type, dividend_yield, exercise_style)
            f1 = self.price(spot_price, strike_price, time_to_expiry, risk_free_rate + bump, volatility,
                            option_type, dividend_yield, exercise_style)
        return ((f0 - f1) / bump) / 100.0

    def vega(
        self,
        spot_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        volatility: float,
        dividend_yield: float = 0.0,
        exercise_style: str = 'american'
    ) -> float:
        """
        Vega as (base - bumped) / bump, scaled per 1% vol move (priced as a call)

        Note the sign: the difference is taken as base minus bumped.
        """
        bump = self.config.vol_bump
        with self._lock:
            f0 = self.price(spot_price, strike_price, time_to_expiry, risk_free_rate, volatility,
                            'call', dividend_yield, exercise_style)
            f1 = self.price(spot_price, strike_price, time_to_expiry, risk_free_rate, volatility + bump,
                            'call', dividend_yield, exercise_style)
        return ((f0 - f1) / bump) / 100.0


class ImpliedVolatilityCalculator:
    """
    Newton-Raphson implied volatility solver

    Works with any model exposing price(...) and vega(...) with the
    package argument order, i.e. BlackScholes and Black. The vega is used
    as the derivative of the price with respect to volatility.
    """

    def __init__(self, model, config: Optional[PricingConfig] = None):
        """
        Args:
            model: Pricing model (class or instance) with price and vega
            config: Numerical settings, DEFAULT_CONFIG when omitted
        """
        self.model = model
        self.config = config or DEFAULT_CONFIG

    def solve(
        self,
        market_price: float,
        underlying_price: float,
        strike_price: float,
        time_to_expiry: float,
        risk_free_rate: float,
        option_type: str = 'call',
        **model_kwargs
    ) -> ImpliedVolResult:
        """
        Solve price(vol) = market_price

        Args:
            market_price: Observed option price
            underlying_price: Spot (BlackScholes) or forward (Black) price
            strike_price: Option strike price
            time_to_expiry: Time to expiry in years
            risk_free_rate: Risk-free interest rate
            option_type: 'call' or 'put'
            **model_kwargs: Extra model arguments, e.g. dividend_yield

        Returns:
            ImpliedVolResult; converged is False when no root was found
        """
        validate_option_type(option_type)
        validate_option_inputs(underlying_price, strike_price, time_to_expiry, risk_free_rate,
                               None, model_kwargs.get('dividend_yield', 0.0),
                               underlying_name="underlying_price")
        market_price = validate_market_price(market_price)

        cfg = self.config
        vol = cfg.iv_initial_guess
        residual = float('nan')

        for iteration in range(1, cfg.iv_max_iterations + 1):
            residual = self.model.price(underlying_price, strike_price, time_to_expiry,
                                        risk_free_rate, vol, option_type, **model_kwargs) - market_price

            if -cfg.iv_tolerance < residual < cfg.iv_tolerance:
                logger.debug(f"Implied vol converged to {vol:.8f} after {iteration} iterations")
                return ImpliedVolResult(vol, iteration, True, residual, "converged")

            # The reported vol must be the one the residual was measured at
            if iteration == cfg.iv_max_iterations:
                break

            vega = self.model.vega(underlying_price, strike_price, time_to_expiry,
                                   risk_free_rate, vol, **model_kwargs)
            if not abs(vega) >= cfg.iv_min_vega:
                return self._failed(vol, iteration, residual, f"vega {vega:.3e} too small at vol={vol:.6f}")

            next_vol = vol - residual / vega
            logger.debug(f"Newton iteration {iteration}: vol={vol:.8f}, residual={residual:.3e}, next={next_vol:.8f}")

            if not math.isfinite(next_vol):
                return self._failed(vol, iteration, residual, f"non-finite iterate ({next_vol})")
            if next_vol <= 0:
                # Overshoot below zero: halve instead of leaving the domain
                logger.debug(f"Newton step to {next_vol:.8f} damped to {vol / 2:.8f}")
                next_vol = vol / 2
            vol = next_vol

        return self._failed(vol, cfg.iv_max_iterations, residual,
                            f"no convergence after {cfg.iv_max_iterations} iterations")

    @staticmethod
    def _failed(vol: float, iterations: int, residual: float, reason: str) -> ImpliedVolResult:
        logger.warning(f"Implied volatility did not converge: {reason}")
        return ImpliedVolResult(vol, iterations, False, residual, reason)
