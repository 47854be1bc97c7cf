"""
Money-weighted annualized return (XIRR) by Newton-Raphson iteration.
"""

import logging
import math
from collections.abc import Sequence

from bond_tracker.exceptions import ConvergenceError, DegenerateCashFlowError, XirrError
from bond_tracker.models import CashFlow

logger: logging.Logger = logging.getLogger(__name__)

DAYS_PER_YEAR: float = 365.0
DEFAULT_GUESS: float = 0.1
TOLERANCE: float = 1e-6
MAX_ITERATIONS: int = 100
MIN_DERIVATIVE: float = 1e-12


def _year_fractions(cash_flows: Sequence[CashFlow]) -> list[float]:
    first_date = cash_flows[0].date
    return [(cf.date - first_date).days / DAYS_PER_YEAR for cf in cash_flows]


def npv(rate: float, cash_flows: Sequence[CashFlow]) -> float:
    """Net present value of the flows, discounted to the first flow's date."""
    years = _year_fractions(cash_flows)
    return sum(cf.amount / (1 + rate) ** t for cf, t in zip(cash_flows, years))


def npv_derivative(rate: float, cash_flows: Sequence[CashFlow]) -> float:
    years = _year_fractions(cash_flows)
    return sum(-t * cf.amount / (1 + rate) ** (t + 1) for cf, t in zip(cash_flows, years))


def xirr(
    cash_flows: Sequence[CashFlow],
    guess: float = DEFAULT_GUESS,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
) -> float:
    """
    Solve for the annual rate at which the flows' NPV is zero.

    Args:
        cash_flows: Flows sorted by date, at least one positive and one negative
        guess: Starting rate
        tolerance: Stop once |NPV| or the step between rates falls below this
        max_iterations: Iteration cap

    Returns:
        The rate as a fraction (0.1 == 10%)

    Raises:
        DegenerateCashFlowError: Fewer than two flows or no sign change
        ConvergenceError: Flat derivative, guess at or below -100%, or no convergence
    """
    if len(cash_flows) < 2:
        raise DegenerateCashFlowError(f"Need at least two cash flows, got {len(cash_flows)}")
    if not any(cf.amount > 0 for cf in cash_flows) or not any(cf.amount < 0 for cf in cash_flows):
        raise DegenerateCashFlowError("Cash flows need both a positive and a negative amount")

    if 1 + guess <= 0:
        raise ConvergenceError(f"Starting rate {guess} is at or below -100%")

    rate = guess
    for iteration in range(max_iterations):
        try:
            value = npv(rate, cash_flows)
            if abs(value) < tolerance:
                logger.debug(f"XIRR converged on NPV after {iteration} iterations: {rate}")
                return rate

            derivative = npv_derivative(rate, cash_flows)
        except OverflowError as e:
            raise ConvergenceError(f"Overflow evaluating NPV at rate {rate}") from e

        if abs(derivative) < MIN_DERIVATIVE:
            raise ConvergenceError(f"NPV derivative vanished at rate {rate}")

        step = value / derivative
        if math.isnan(step) or math.isinf(step):
            raise ConvergenceError(f"Rate became non-finite after {iteration + 1} iterations")

        # Rate must stay above -100%: halve any step that would cross it
        new_rate = rate - step
        while 1 + new_rate <= 0:
            step /= 2
            new_rate = rate - step

        if abs(new_rate - rate) < tolerance:
            logger.debug(f"XIRR converged on step after {iteration + 1} iterations: {new_rate}")
            return new_rate
        rate = new_rate

    raise ConvergenceError(f"No convergence after {max_iterations} iterations (last rate {rate})")


def annualized_return(cash_flows: Sequence[CashFlow]) -> float:
    """XIRR as a percentage, or 0.0 when it cannot be computed."""
    if not cash_flows:
        return 0.0
    try:
        return xirr(cash_flows) * 100
    except XirrError as e:
        logger.warning(f"Annualized return unavailable, reporting 0: {e}")
        return 0.0
