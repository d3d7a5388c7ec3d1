"""Converters turning the raw text of a field into its final value.

Every converter is a plain ``str -> value`` callable; they are attached to
decode targets and applied once, when the field's closing tag is seen.
"""

import math
import re
from typing import Any, Callable, List, Optional, Union

_DECIMAL = re.compile(r"^-?\d+\.\d+$")
_INTEGER_PREFIX = re.compile(r"^[+-]?\d+")

def identity(value: str) -> str:
    return value

def convert_number(value: str) -> Union[int, float]:
    """Converts API number text.

    Decimal text becomes a float ("3.14" -> 3.14, "-3.14" -> -3.14). Anything else is read as
    its leading integer ("42" -> 42, "12 nations" -> 12); text without a
    leading integer becomes NaN.
    """
    text = value.strip()
    if _DECIMAL.match(text):
        return float(text)
    match = _INTEGER_PREFIX.match(text)
    if match:
        return int(match.group(0))
    return math.nan

def convert_boolean(value: str) -> bool:
    """The API flags truth with a literal "1"."""
    return value.strip() == '1'

def convert_array(separator: str = ',', item: Optional[Callable[[str], Any]] = None) -> Callable[[str], List[Any]]:
    """Builds a converter splitting delimited text into a list.

    Empty text gives an empty list. An empty separator splits into characters.
    """
    def convert(value: str) -> List[Any]:
        if value == '':
            return []
        parts = list(value) if separator == '' else value.split(separator)
        if item is not None:
            return [item(part) for part in parts]
        return parts
    return convert

def none_if_zero(value: str) -> Optional[str]:
    # "0" marks an absent reference (no founder, no governor)
    return None if value.strip() == '0' else value
