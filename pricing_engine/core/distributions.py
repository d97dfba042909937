"""
Standard normal distribution functions

N(x) uses the Zelen & Severo rational polynomial approximation (absolute
error below 1e-7, see Hull, "Options, Futures, and Other Derivatives").
Both analytic models price with these two functions, so quoted reference
values reproduce exactly. Do not swap in an exact error function.
"""

import math

A1 = 0.31938153
A2 = -0.356563782
A3 = 1.781477937
A4 = -1.821255978
A5 = 1.330274429
GAMMA = 0.2316419

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)


def DN(x: float) -> float:
    """Standard normal density"""
    return _INV_SQRT_2PI * math.exp(-(x * x) / 2.0)


def N(x: float) -> float:
    """Cumulative standard normal distribution"""
    L = abs(x)
    K = 1.0 / (1.0 + GAMMA * L)
    poly = A1 * K + A2 * K * K + A3 * K ** 3 + A4 * K ** 4 + A5 * K ** 5
    w = 1.0 - DN(L) * poly

    if x < 0:
        w = 1.0 - w
    return w
