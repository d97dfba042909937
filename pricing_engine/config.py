"""
Pricing Engine Configuration

Numerical settings shared by the pricing models. Defaults reproduce the
reference behaviour; each value can be overridden from the environment
(or a .env file) through PricingConfig.from_env().
"""

import os
import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from .exceptions import InvalidParameterError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENV_PREFIX = "PRICING_"


@dataclass(frozen=True)
class PricingConfig:
    """Numerical settings for lattice and implied volatility calculations"""

    # Binomial lattice
    lattice_steps: int = 50            # time steps, "today" is added on top
    rate_bump: float = 1e-5            # lattice rho finite difference
    vol_bump: float = 1e-5             # lattice vega finite difference

    # Newton-Raphson implied volatility
    iv_initial_guess: float = 0.5
    iv_max_iterations: int = 100
    iv_tolerance: float = 1e-10        # |price - market| below this is converged
    iv_min_vega: float = 1e-12

    # Numerical Greeks (relative bump)
    numerical_bump: float = 1e-4

    def __post_init__(self) -> None:
        if self.lattice_steps < 1:
            raise InvalidParameterError("lattice_steps", self.lattice_steps, "must be >= 1")
        if self.iv_max_iterations < 1:
            raise InvalidParameterError("iv_max_iterations", self.iv_max_iterations, "must be >= 1")
        if self.iv_initial_guess <= 0:
            raise InvalidParameterError("iv_initial_guess", self.iv_initial_guess, "must be positive")
        for name in ("rate_bump", "vol_bump", "iv_tolerance", "iv_min_vega", "numerical_bump"):
            value = getattr(self, name)
            if not value > 0:
                raise InvalidParameterError(name, value, "must be positive")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "PricingConfig":
        """
        Build a config from PRICING_* environment variables

        Args:
            dotenv_path: Optional .env file to load first (existing
                environment variables take precedence)

        Returns:
            PricingConfig with overrides applied
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)

        defaults = cls()
        config = cls(
            lattice_steps=_env("LATTICE_STEPS", int, defaults.lattice_steps),
            rate_bump=_env("RATE_BUMP", float, defaults.rate_bump),
            vol_bump=_env("VOL_BUMP", float, defaults.vol_bump),
            iv_initial_guess=_env("IV_INITIAL_GUESS", float, defaults.iv_initial_guess),
            iv_max_iterations=_env("IV_MAX_ITERATIONS", int, defaults.iv_max_iterations),
            iv_tolerance=_env("IV_TOLERANCE", float, defaults.iv_tolerance),
            iv_min_vega=_env("IV_MIN_VEGA", float, defaults.iv_min_vega),
            numerical_bump=_env("NUMERICAL_BUMP", float, defaults.numerical_bump),
        )
        logger.debug(f"Loaded pricing config from environment: {config}")
        return config


def _env(name: str, cast: Callable[[str], T], default: T) -> T:
    key = ENV_PREFIX + name
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise InvalidParameterError(key, raw, f"expected {cast.__name__}") from None


DEFAULT_CONFIG = PricingConfig()
