"""Error values reported in catalog envelopes.

Substrates raise exceptions; services turn them into ``ErrorDetail`` values
before returning. ``retryable`` tells a caller whether repeating the same
call may succeed, e.g. after a broker or cache outage clears.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """One reported error with a stable code and string-only metadata."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
