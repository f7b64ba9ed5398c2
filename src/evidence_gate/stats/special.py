"""Special functions for the evidence-gate statistics engine.

Provides the error function, standard normal CDF and quantile, log-gamma,
the regularized incomplete beta function and the Student's t
distribution (density, CDF and quantile). Everything is pure Python with
no internal state, so results are bit-identical across calls.

References:
    erf: Abramowitz, M. & Stegun, I. A. (1964). "Handbook of
        Mathematical Functions", formula 7.1.26.
    Normal quantile: Abramowitz & Stegun, formula 26.2.23.
    Log-gamma: Lanczos, C. (1964). "A precision approximation of the
        gamma function." SIAM J. Numer. Anal. B 1: 86-96.
    Incomplete beta: Press et al. "Numerical Recipes", Chapter 6.4.
"""

from __future__ import annotations

import math

# Abramowitz & Stegun 7.1.26 (max absolute error ~1.5e-7).
_ERF_A1 = 0.254829592
_ERF_A2 = -0.284496736
_ERF_A3 = 1.421413741
_ERF_A4 = -1.453152027
_ERF_A5 = 1.061405429
_ERF_P = 0.3275911

# Abramowitz & Stegun 26.2.23.
_NQ_C0 = 2.515517
_NQ_C1 = 0.802853
_NQ_C2 = 0.010328
_NQ_D1 = 1.432788
_NQ_D2 = 0.189269
_NQ_D3 = 0.001308

# Lanczos approximation, g=7, n=9.
_LANCZOS_G = 7
_LANCZOS_COEFFICIENTS = (
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
)

# Above this many degrees of freedom the t distribution is treated as normal.
_T_NORMAL_DF = 200

_BETA_CF_MAX_ITER = 100
_BETA_CF_EPS = 1e-10

_T_QUANTILE_MAX_ITER = 10
_T_PDF_FLOOR = 1e-10


# ---------------------------------------------------------------------------
# Normal distribution
# ---------------------------------------------------------------------------


def erf(x: float) -> float:
    """Approximate the error function.

    Uses the Abramowitz-Stegun rational approximation with a maximum
    absolute error of about 1.5e-7. Odd symmetry is applied explicitly.
    """
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)

    t = 1.0 / (1.0 + _ERF_P * x)
    poly = ((((_ERF_A5 * t + _ERF_A4) * t + _ERF_A3) * t + _ERF_A2) * t + _ERF_A1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def normal_cdf(x: float) -> float:
    """Standard normal cumulative distribution function."""
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def normal_quantile(p: float) -> float:
    """Inverse of the standard normal CDF.

    Rational approximation valid on the open interval (0, 1). Returns
    ``-inf`` for ``p <= 0`` and ``inf`` for ``p >= 1``. The upper half is
    obtained by reflection: ``normal_quantile(p) == -normal_quantile(1 - p)``.

    Args:
        p: Probability.

    Returns:
        The z value with ``normal_cdf(z) ~= p``.
    """
    if p <= 0:
        return float("-inf")
    if p >= 1:
        return float("inf")
    if p > 0.5:
        return -normal_quantile(1.0 - p)

    t = math.sqrt(-2.0 * math.log(p))
    numerator = _NQ_C0 + _NQ_C1 * t + _NQ_C2 * t * t
    denominator = 1.0 + _NQ_D1 * t + _NQ_D2 * t * t + _NQ_D3 * t * t * t
    return -(t - numerator / denominator)


# ---------------------------------------------------------------------------
# Gamma and beta functions
# ---------------------------------------------------------------------------


def log_gamma(x: float) -> float:
    """Natural log of the gamma function (Lanczos approximation).

    For ``x < 0.5`` the reflection formula
    ``Γ(x)Γ(1-x) = π / sin(πx)`` is used.
    """
    if x < 0.5:
        return math.log(math.pi / math.sin(math.pi * x)) - log_gamma(1.0 - x)

    x -= 1.0
    acc = _LANCZOS_COEFFICIENTS[0]
    for i in range(1, _LANCZOS_G + 2):
        acc += _LANCZOS_COEFFICIENTS[i] / (x + i)
    t = x + _LANCZOS_G + 0.5
    return 0.5 * math.log(2.0 * math.pi) + (x + 0.5) * math.log(t) - t + math.log(acc)


def incomplete_beta(x: float, a: float, b: float) -> float:
    """Compute the regularized incomplete beta function I_x(a, b).

    The continued fraction converges quickly for
    ``x < (a + 1) / (a + b + 2)``; otherwise the complementary identity
    ``I_x(a, b) = 1 - I_{1-x}(b, a)`` is used.

    Args:
        x: Upper integration limit in [0, 1].
        a: First shape parameter (> 0).
        b: Second shape parameter (> 0).

    Returns:
        I_x(a, b) in [0, 1].
    """
    if x <= 0:
        return 0.0
    if x >= 1:
        return 1.0

    log_front = (
        log_gamma(a + b)
        - log_gamma(a)
        - log_gamma(b)
        + a * math.log(x)
        + b * math.log(1.0 - x)
    )
    front = math.exp(log_front)

    if x < (a + 1.0) / (a + b + 2.0):
        result = front * _beta_cf(x, a, b) / a
    else:
        result = 1.0 - front * _beta_cf(1.0 - x, b, a) / b
    return min(max(result, 0.0), 1.0)


def _beta_cf(x: float, a: float, b: float) -> float:
    """Continued fraction for the incomplete beta (modified Lentz).

    Reference: Numerical Recipes, ``betacf``.
    """
    qab = a + b
    qap = a + 1.0
    qam = a - 1.0

    c = 1.0
    d = 1.0 - qab * x / qap
    if abs(d) < _BETA_CF_EPS:
        d = _BETA_CF_EPS
    d = 1.0 / d
    h = d

    for m in range(1, _BETA_CF_MAX_ITER + 1):
        m2 = 2 * m

        # Even step.
        aa = m * (b - m) * x / ((qam + m2) * (a + m2))
        d = 1.0 + aa * d
        if abs(d) < _BETA_CF_EPS:
            d = _BETA_CF_EPS
        c = 1.0 + aa / c
        if abs(c) < _BETA_CF_EPS:
            c = _BETA_CF_EPS
        d = 1.0 / d
        h *= d * c

        # Odd step.
        aa = -(a + m) * (qab + m) * x / ((a + m2) * (qap + m2))
        d = 1.0 + aa * d
        if abs(d) < _BETA_CF_EPS:
            d = _BETA_CF_EPS
        c = 1.0 + aa / c
        if abs(c) < _BETA_CF_EPS:
            c = _BETA_CF_EPS
        d = 1.0 / d
        delta = d * c
        h *= delta

        if abs(delta - 1.0) < _BETA_CF_EPS:
            break

    return h


# ---------------------------------------------------------------------------
# Student's t distribution
# ---------------------------------------------------------------------------


def t_dist_pdf(t: float, df: float) -> float:
    """Probability density of Student's t distribution."""
    log_coef = log_gamma((df + 1.0) / 2.0) - log_gamma(df / 2.0) - 0.5 * math.log(df * math.pi)
    return math.exp(log_coef) * (1.0 + t * t / df) ** (-(df + 1.0) / 2.0)


def t_dist_cdf(t: float, df: float) -> float:
    """Cumulative distribution function of Student's t distribution.

    For ``df > 200`` the standard normal CDF is used. Otherwise:

        P(T <= t) = 1 - 0.5 * I_x(df/2, 1/2)   for t >= 0
        P(T <= t) = 0.5 * I_x(df/2, 1/2)       for t < 0

    where ``x = df / (df + t^2)``.
    """
    if df > _T_NORMAL_DF:
        return normal_cdf(t)
    if math.isinf(t):
        return 1.0 if t > 0 else 0.0

    x = df / (df + t * t)
    tail = incomplete_beta(x, df / 2.0, 0.5)
    if t >= 0:
        return 1.0 - tail / 2.0
    return tail / 2.0


def t_dist_quantile(p: float, df: float) -> float:
    """Inverse CDF of Student's t distribution.

    Starts from the normal quantile and refines with at most 10
    Newton-Raphson steps, using the t density as the derivative. The
    iteration stops early if the density underflows (< 1e-10), which
    happens far out in the tails.

    Args:
        p: Probability in (0, 1).
        df: Degrees of freedom (> 0, need not be an integer).

    Returns:
        The t value with ``t_dist_cdf(t, df) ~= p``.
    """
    if df > _T_NORMAL_DF:
        return normal_quantile(p)

    x = normal_quantile(p)
    if math.isinf(x):
        return x
    for _ in range(_T_QUANTILE_MAX_ITER):
        density = t_dist_pdf(x, df)
        if density < _T_PDF_FLOOR:
            break
        x -= (t_dist_cdf(x, df) - p) / density
    return x
