"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse a positive money amount into a Decimal.

    Both separator conventions are accepted; the right-most separator
    followed by one or two digits is the decimal point:
    - "1500", "1500.50"
    - "35.000,50" and "35,000.50"
    - "US$ 100", "$1,234.56", "€ 10"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    value = re.sub(r"U\$S|US\$|AR\$|[$€£]|\s", "", amount_str.strip(), flags=re.IGNORECASE)

    match = re.search(r"[.,](\d{1,2})$", value)
    if match:
        integer_part = re.sub(r"[.,]", "", value[: match.start()])
        value = f"{integer_part}.{match.group(1)}"
    else:
        value = re.sub(r"[.,]", "", value)

    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
