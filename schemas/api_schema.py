"""
Result shapes of a trading engine call.

A backend failure is a value, not an exception: ``ApiResult.error`` holds the
classified failure and ``data`` stays ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from enums.error_kind import ErrorKind


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    # HTML-escaped, safe to render as is
    message: str
    status: Optional[int] = None
    payload: Any = None

    @property
    def transient(self) -> bool:
        return self.kind.transient


@dataclass(frozen=True)
class ApiResult:
    ok: bool
    data: Any = None
    error: Optional[ClassifiedError] = None

    @classmethod
    def success(cls, data: Any) -> "ApiResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: ClassifiedError) -> "ApiResult":
        return cls(ok=False, error=error)

    def field(self, key: str, default: Any = None) -> Any:
        """Value of ``key`` in a dict payload, ``default`` otherwise."""
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default
