"""Domain Events related to API calls and admission control.

Examples include events for when calls are deferred, retried, fail, or
succeed, and when the server's rate limit headers recalibrate the limiter.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an API call is about to be made."""
    endpoint: str
    method: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an API call completed with a success status."""
    endpoint: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively."""
    endpoint: str
    error_type: str
    error_message: str
    status_code: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when an API call is held back by an admission controller."""
    limiter: str
    wait_time_seconds: float
    queue_position: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed API call."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class QuotaRecalibrated(DomainEvent):
    """Event triggered when server headers changed the admission window."""
    capacity: int
    sent_in_window: int
    window_expires_at: float
    server_retry_at: Optional[float] = None
    timestamp: float = field(default_factory=time.time)

def dispatch_event(event: Any) -> None:
    """Publishes a domain event. Events are only logged for now."""
    logger.debug(f"EVENT: {event}")
