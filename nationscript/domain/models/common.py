"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like entity names, shard names and
header maps, plus the small policy records the resilience layer is built from.
"""

from enum import Enum
from typing import Any, Callable, Dict, Mapping, NewType, TypedDict

# === Core Value Objects ===

EntityName = NewType("EntityName", str)        # Nation/region name as typed by a user
IdForm = NewType("IdForm", str)                # Lower-case, underscore-separated name
ShardName = NewType("ShardName", str)          # A q= sub-query, e.g. 'census'
TagName = NewType("TagName", str)              # XML element name
FieldPath = NewType("FieldPath", str)          # Product field, dotted for nesting ('depicted.flag')

HeaderMap = Mapping[str, str]
Converter = Callable[[str], Any]
Attributes = Dict[str, str]

# === Admission Control ===

class CallClass(str, Enum):
    """Call classes with their own cooldown on top of the primary limit."""
    TELEGRAM = "telegram"
    RECRUITMENT = "recruitment"

class RateLimitPolicy(TypedDict):
    """Value Object describing the primary admission window."""
    window_seconds: float
    capacity: int
    safety_buffer_seconds: float
    stagger_seconds: float

class BackoffPolicy(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_retries: int
    initial_delay: float
    factor: float
