"""Fallback extraction of bond details embedded in free-text security names."""

import re

COUPON_RATE_PATTERN: re.Pattern[str] = re.compile(r"(\d+(?:\.\d+)?)\s*%")
MATURITY_DATE_PATTERN: re.Pattern[str] = re.compile(r"(\d{2}.\d{2}.\d{4})")


def extract_coupon_rate(name: str | None) -> float | None:
    """Read a coupon rate like '7.70%' out of a security name."""
    if not name:
        return None
    match = COUPON_RATE_PATTERN.search(name)
    return float(match.group(1)) if match else None


def extract_maturity_date(name: str | None) -> str | None:
    """Read a maturity date like '15.03.2027' out of a security name, returned as written."""
    if not name:
        return None
    match = MATURITY_DATE_PATTERN.search(name)
    return match.group(1) if match else None
