# billbreak/parsing.py
"""Lenient number reading for values that arrive as receipt or form text.

Gemini answers and hand-typed fields carry prices like ``"$ 12.50"``,
``"1.234,56"`` or quantities like ``"2x"``. The bill itself only ever
holds validated floats, so conversion happens here, before a model is
built.
"""
import math
import re

_AMOUNT = re.compile(r'\d(?:[\d.,]*\d)?')
_DIGIT_GAP = re.compile(r'(?<=\d)\s+(?=\d)')
_QUANTITY = re.compile(r'^(\d+)(?:[.,](\d*))?$')


def _normalise_separators(text: str) -> str:
    """Rewrite ``text`` so that ``.`` is the only decimal separator."""
    if ',' in text and '.' in text:
        # Whichever separator comes last is the decimal one
        if text.rfind(',') > text.rfind('.'):
            return text.replace('.', '').replace(',', '.')
        return text.replace(',', '')
    if text.count(',') == 1 and len(text.rsplit(',', 1)[1]) != 3:
        return text.replace(',', '.')  # 12,50
    return text.replace(',', '')


def amount_from_text(text: str) -> float | None:
    """Read a price or charge such as ``"Rs. 1,250.00"``; None if there is no number."""
    match = _AMOUNT.search(_DIGIT_GAP.sub('', text))
    if not match:
        return None
    try:
        return float(_normalise_separators(match.group()))
    except ValueError:
        return None


def quantity_from_text(text: str) -> float | None:
    """Read a positive quantity such as ``"2"``, ``"2x"`` or ``"1,5"``."""
    match = _QUANTITY.match(text.lower().replace('x', '', 1).strip())
    if not match:
        return None
    whole, fraction = match.groups()
    value = float(f"{whole}.{fraction or '0'}")
    return value if value > 0 else None


def clean_and_convert_number(value: str | int | float | None, is_quantity: bool = False) -> float | None:
    """Convert a loosely typed number to float, or None when there is none.

    Raises ValueError for numbers that are not finite (``1e400``,
    ``Infinity``, ``NaN``), which JSON decoding lets through.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        number = (quantity_from_text(text) if is_quantity else amount_from_text(text)) if text else None
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as e:
            raise ValueError(f"{value!r} is too large") from e
    else:
        return None
    if number is not None and not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return number
