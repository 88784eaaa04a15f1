"""Formatting utilities for currency, percentage and date display.

All money text passes through :func:`parse_currency` and
:func:`format_currency`, so ``format_currency(parse_currency(s))`` is
the normalized rendering of ``s`` for a given locale.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Dict, Optional, Union

import pandas as pd

from .config import DEFAULT_LOCALE
from .exceptions import InvalidArgumentError

LOCALES: Dict[str, Dict[str, str]] = {
    "en_US": {"symbol": "$", "thousands": ",", "decimal": ".", "date": "%m/%d/%Y"},
    "pt_BR": {"symbol": "R$ ", "thousands": ".", "decimal": ",", "date": "%d/%m/%Y"},
}

MONTH_NAMES: Dict[str, list] = {
    "en_US": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "pt_BR": [
        "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
        "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
    ],
}

_AMOUNT_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    # thousands separators only between full three-digit groups
    name: re.compile(
        rf"^(\d{{1,3}}(?:{re.escape(info['thousands'])}\d{{3}})+|\d+)(?:{re.escape(info['decimal'])}\d+)?$"
    )
    for name, info in LOCALES.items()
}

DateLike = Union[date, datetime, pd.Timestamp, str]


def _locale_info(locale: Optional[str]) -> Dict[str, str]:
    name = locale or DEFAULT_LOCALE
    try:
        return LOCALES[name]
    except KeyError:
        raise InvalidArgumentError(f"Unsupported locale: {name}") from None


def format_currency(
    amount: Union[float, int],
    include_sign: bool = True,
    locale: Optional[str] = None,
) -> str:
    """Format a currency amount for display.

    Args:
        amount: The amount to format
        include_sign: Whether to include the currency symbol
        locale: Locale name (``en_US`` or ``pt_BR``); defaults to config

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "-R$ 1.234,56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-1234.5, locale="pt_BR")
        '-R$ 1.234,50'
    """
    info = _locale_info(locale)
    value = round(float(amount), 2)
    body = f"{abs(value):,.2f}"
    # swap separators through a placeholder
    body = body.replace(",", "\0").replace(".", info["decimal"]).replace("\0", info["thousands"])
    if include_sign:
        body = f"{info['symbol']}{body}"
    return f"-{body}" if value < 0 else body


def parse_currency(text: Union[str, float, int], locale: Optional[str] = None) -> float:
    """Parse user-entered money text into a float rounded to cents.

    Accepts the locale's symbol, thousands separators, a leading or
    trailing minus sign and accounting-style parentheses.

    Raises:
        InvalidArgumentError: if the text is empty or not a number
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return round(float(text), 2)
    if text is None:
        raise InvalidArgumentError("Amount is required")

    info = _locale_info(locale)
    raw = str(text).strip()
    negative = False
    if raw.startswith("(") and raw.endswith(")"):
        negative = True
        raw = raw[1:-1].strip()
    if raw.startswith("-"):
        negative = not negative
        raw = raw[1:].strip()
    elif raw.endswith("-"):
        negative = not negative
        raw = raw[:-1].strip()

    for symbol in (info["symbol"].strip(), "R$", "$"):
        if raw.startswith(symbol):
            raw = raw[len(symbol):].strip()
            break
    if raw.startswith("-"):
        negative = not negative
        raw = raw[1:].strip()

    if not _AMOUNT_PATTERNS[locale or DEFAULT_LOCALE].match(raw):
        raise InvalidArgumentError(f"Invalid amount: {text!r}")
    cleaned = raw.replace(info["thousands"], "").replace(info["decimal"], ".")
    value = round(float(cleaned), 2)
    return -value if negative else value


def normalize_currency(text: Union[str, float, int], locale: Optional[str] = None) -> str:
    """Return the canonical rendering of money text."""
    return format_currency(parse_currency(text, locale), locale=locale)


def format_percentage(value: float, decimals: int = 1, locale: Optional[str] = None) -> str:
    info = _locale_info(locale)
    return f"{float(value):.{decimals}f}".replace(".", info["decimal"]) + "%"


def parse_date(value: DateLike) -> date:
    """Coerce strings, datetimes and timestamps into a ``date``."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise InvalidArgumentError(f"Invalid date: {value!r}") from None
    raise InvalidArgumentError(f"Invalid date: {value!r}")


def format_date(value: DateLike, locale: Optional[str] = None) -> str:
    info = _locale_info(locale)
    return parse_date(value).strftime(info["date"])


def month_label(year: int, month: int, locale: Optional[str] = None) -> str:
    """Human label for a calendar month, e.g. ``March 2024``."""
    _locale_info(locale)
    names = MONTH_NAMES[locale or DEFAULT_LOCALE]
    return f"{names[month - 1]} {year}"
