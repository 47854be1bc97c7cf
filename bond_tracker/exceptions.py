class UnknownCurrencyError(ValueError):
    """Raised for a currency code outside the supported set."""

    def __init__(self, currency: object):
        self.currency = currency
        super().__init__(f"Unknown currency: {currency!r}")


class XirrError(ArithmeticError):
    """Base class for XIRR failures. Callers report a yield of 0 instead."""


class DegenerateCashFlowError(XirrError):
    """Cash flows cannot have a root: too few flows or all of the same sign."""


class ConvergenceError(XirrError):
    """Newton-Raphson did not converge to a usable rate."""
