"""Value parsing for request literals: dates, numbers, wildcards and limits."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
import re
from typing import Optional, Union

from ..core.exceptions import MalformedValueError

# Accepted input date formats; everything is bound as yyyyMMdd
DATE_FORMATS = ["%d.%m.%Y", "%d/%m/%Y", "%Y-%m-%d", "%Y%m%d"]
DB_DATE_FORMAT = "%Y%m%d"

# Words that may follow an amount and carry no meaning for the filter
CURRENCY_WORDS = {"eur", "euro", "€", "usd", "dollar", "chf"}

_DATE_LIKE = re.compile(r"^\d{1,2}[./]\d{1,2}[./]\d{2,4}$|^\d{4}-\d{1,2}-\d{1,2}$")
_GERMAN_THOUSANDS = re.compile(r"^-?\d{1,3}(\.\d{3})+$")
_WILDCARDS = ("*", "%")


def looks_like_date(text: str) -> bool:
    """True for tokens shaped like a date (the compact yyyyMMdd form excluded)."""
    return bool(_DATE_LIKE.match(text.strip()))


def parse_date(text: str) -> Optional[str]:
    """Parse a date literal into the database format.

    Examples:
        "1.2.2024"   -> "20240201"
        "31/12/2024" -> "20241231"
        "2024-03-15" -> "20240315"
        "20240315"   -> "20240315"
        "31.02.2024" -> None
    """
    value = text.strip()
    for fmt in DATE_FORMATS:
        try:
            parsed: date = datetime.strptime(value, fmt).date()
        except ValueError:
            continue
        if parsed.year < 1000:
            # two-digit years are ambiguous
            continue
        return parsed.strftime(DB_DATE_FORMAT)
    return None


def parse_number(text: str) -> Optional[Union[int, Decimal]]:
    """Parse German or plain notation numbers.

    Examples:
        "1.234,56" -> Decimal("1234.56")
        "1234,5"   -> Decimal("1234.5")
        "10.000"   -> 10000
        "12.5"     -> Decimal("12.5")
        "42"       -> 42
    """
    value = text.strip()
    if not value:
        return None

    if "," in value:
        # German: dots group thousands, comma marks decimals
        value = value.replace(".", "").replace(",", ".")
    elif _GERMAN_THOUSANDS.match(value):
        value = value.replace(".", "")

    if re.fullmatch(r"-?\d+", value):
        return int(value)
    if not re.fullmatch(r"-?\d+\.\d+", value):
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def has_wildcard(text: str) -> bool:
    return any(ch in text for ch in _WILDCARDS)


def to_like_pattern(text: str) -> str:
    """Turn a user value into a LIKE pattern.

    Examples:
        "Gründemann*" -> "Gründemann%"
        "Müller"      -> "%Müller%"
    """
    value = text.strip()
    if has_wildcard(value):
        return value.replace("*", "%")
    return f"%{value}%"


def parse_limit(text: str) -> int:
    """Parse a row limit; only positive integers are accepted."""
    value = parse_number(text)
    if not isinstance(value, int):
        raise MalformedValueError(
            f"Ungültige Zeilenbegrenzung: '{text}'",
            details={"value": text},
        )
    if value <= 0:
        raise MalformedValueError(
            f"Zeilenbegrenzung muss positiv sein: {value}",
            details={"value": text},
        )
    return value


def is_currency_word(text: str) -> bool:
    return text.strip().lower() in CURRENCY_WORDS
