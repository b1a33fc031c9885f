"""
Fixed-point value validation for configuration settings
"""
import locale
import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

MIN_VALUE = Decimal("0.00")
MAX_VALUE = Decimal("99999999.99")
SCALE = Decimal("0.01")
# magnitude past which quantize could exceed the decimal context precision
LIMIT = Decimal("1000000000")


@dataclass(frozen=True)
class NumberConvention:
    """Textual decimal convention (decimal point and digit grouping characters)"""
    decimal_point: str = "."
    thousands_sep: str = ","

    def pattern(self) -> "re.Pattern":
        point = re.escape(self.decimal_point)
        group = re.escape(self.thousands_sep) if self.thousands_sep else ""
        integer = rf"\d[\d{group}]*" if group else r"\d+"
        return re.compile(rf"^[+-]?(?:{integer}(?:{point}\d*)?|{point}\d+)$")

    def to_decimal(self, text: str) -> Optional[Decimal]:
        if not self.pattern().match(text):
            return None
        if self.thousands_sep:
            text = text.replace(self.thousands_sep, "")
        text = text.replace(self.decimal_point, ".")
        try:
            return Decimal(text)
        except InvalidOperation:
            return None


INVARIANT = NumberConvention(".", ",")


def apply_number_locale(name: str = "") -> Optional[str]:
    """
    Set LC_NUMERIC for the process; an empty name takes it from the environment.

    Returns the locale now in effect, or None when ``name`` is not available
    (the previous LC_NUMERIC stays in place).
    """
    try:
        applied = locale.setlocale(locale.LC_NUMERIC, name)
    except locale.Error as e:
        logger.warning(f"Number locale '{name}' not available, keeping {locale.setlocale(locale.LC_NUMERIC)}: {e}")
        return None
    logger.info(f"Number locale: {applied}")
    return applied


def current_locale_convention() -> NumberConvention:
    """Convention of the process locale (LC_NUMERIC)."""
    conv = locale.localeconv()
    decimal_point = conv.get("decimal_point") or "."
    thousands_sep = conv.get("thousands_sep") or ""
    if thousands_sep == decimal_point:
        thousands_sep = ""
    return NumberConvention(decimal_point, thousands_sep)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value"""
    value: Optional[Decimal]
    ok: bool
    error: Optional[str] = None


def parse_decimal(raw: Any, conventions: Optional[Sequence[NumberConvention]] = None) -> Optional[Decimal]:
    """
    Parse a raw value into a Decimal without range checks.

    Text is tried against each convention in order (locale first, invariant
    last by default). Pre-typed numbers are converted directly.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        # repr keeps the shortest text form, so 12.345 stays 12.345
        return Decimal(repr(raw))
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    if conventions is None:
        conventions = (current_locale_convention(), INVARIANT)
    for convention in conventions:
        parsed = convention.to_decimal(text)
        if parsed is not None:
            return parsed
    return None


def normalize(value: Decimal) -> Decimal:
    """Round to two fractional digits, half away from zero."""
    rounded = value.quantize(SCALE, rounding=ROUND_HALF_UP)
    # -0.004 rounds to -0.00; store it as 0.00
    return rounded.copy_abs() if rounded.is_zero() else rounded


def validate(raw: Any, conventions: Optional[Sequence[NumberConvention]] = None) -> ValidationResult:
    """
    Check a value against the DECIMAL(10,2) domain.

    Args:
        raw: Text in any accepted convention, or a pre-typed number
        conventions: Parsing conventions to try in order

    Returns:
        ValidationResult carrying the normalized value when ok
    """
    parsed = parse_decimal(raw, conventions)
    if parsed is None:
        return ValidationResult(None, False, f"'{raw}' is not a number")

    out_of_range = parsed.copy_abs() >= LIMIT
    rounded = None if out_of_range else normalize(parsed)
    if out_of_range or rounded < MIN_VALUE or rounded > MAX_VALUE:
        return ValidationResult(
            None, False, f"'{raw}' is outside the range {MIN_VALUE}..{MAX_VALUE}"
        )
    return ValidationResult(rounded, True)
