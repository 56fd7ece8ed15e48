"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENT = Decimal("0.01")


def parse_amount(amount_str) -> Decimal:
    """Parse an amount into a Decimal rounded to cents.

    Handles various formats:
    - 123.45 (int, float or Decimal values are accepted as well)
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string or number

    Returns:
        Decimal amount quantized to two places

    Raises:
        ValueError: If the amount is blank, not a number, or not finite
    """
    if isinstance(amount_str, bool):
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if isinstance(amount_str, (int, float, Decimal)):
        amount_str = str(amount_str)
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")

    if is_negative:
        amount = -amount
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount '{amount_str}' is out of range")


def parse_positive_amount(amount_str) -> Decimal:
    """Parse an amount that must be strictly greater than zero."""
    amount = parse_amount(amount_str)
    if amount <= 0:
        raise ValueError(f"Amount must be greater than zero, got {amount}")
    return amount
