"""
Sort a backend failure into an ``ErrorKind``.

Order of evidence: the JSON body embedded in ``API error (<code>): <body>``,
then the HTTP status, then substrings of the raw text. The first rule that
matches wins.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any, Optional

from enums.error_kind import ErrorKind
from schemas.api_schema import ClassifiedError

_API_ERROR_RE = re.compile(r"API error \((\d{3})\):\s*(.*)", re.DOTALL)
_RISK_TERMS = ("risk", "security", "honeypot", "rug", "unsafe", "blacklist", "scam")
_TIMEOUT_TERMS = ("timeout", "timed out", "blockhash", "connection refused")
_MAX_DETAIL = 200


def escape_detail(text: str, limit: int = _MAX_DETAIL) -> str:
    """HTML-escape and truncate text coming from the engine."""
    return html.escape(text or "", quote=False)[:limit]


def _kind_from_text(text: str) -> Optional[ErrorKind]:
    lowered = text.lower()
    if any(term in lowered for term in _RISK_TERMS):
        return ErrorKind.SECURITY_REJECTION
    if "insufficient" in lowered:
        return ErrorKind.INSUFFICIENT_BALANCE
    return None


def _kind_from_status(status: Optional[int]) -> Optional[ErrorKind]:
    if status is None:
        return None
    if status in (408, 504):
        return ErrorKind.NETWORK_TIMEOUT
    if 400 <= status < 500:
        return ErrorKind.UPSTREAM_USER_ERROR
    if 500 <= status < 600:
        return ErrorKind.UPSTREAM_SYSTEM_ERROR
    return None


def _error_text(payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message", "reason"):
            value = payload.get(key)
            if value:
                return str(value)
    return ""


def classify_payload(payload: Any, status: Optional[int] = None) -> ClassifiedError:
    """Classify an already decoded engine reply that reports a failure."""
    text = _error_text(payload)
    kind = (
        (_kind_from_text(text) if text else None)
        or _kind_from_status(status)
        or _kind_from_substrings(text)
        or ErrorKind.UNKNOWN
    )
    return ClassifiedError(
        kind=kind,
        status=status,
        message=escape_detail(text or "Request failed"),
        payload=payload,
    )


def _kind_from_substrings(raw: str) -> Optional[ErrorKind]:
    lowered = raw.lower()
    if any(term in lowered for term in _TIMEOUT_TERMS):
        return ErrorKind.NETWORK_TIMEOUT
    if "Token Risk" in raw:
        return ErrorKind.SECURITY_REJECTION
    return _kind_from_text(raw)


def classify(raw: str, status: Optional[int] = None) -> ClassifiedError:
    """Classify a raw failure text, optionally with the HTTP status it came with.

    >>> classify('API error (400): {"error": "Token Risk: score 12"}').kind
    <ErrorKind.SECURITY_REJECTION: 'security_rejection'>
    """
    raw = raw or ""
    payload: Any = None
    detail = raw

    match = _API_ERROR_RE.search(raw)
    if match:
        status = status if status is not None else int(match.group(1))
        body = match.group(2)
        detail = body
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        text = _error_text(payload)
        if text:
            detail = text
            kind = _kind_from_text(text)
            if kind is not None:
                return ClassifiedError(kind=kind, status=status, message=escape_detail(text), payload=payload)

    kind = _kind_from_status(status) or _kind_from_substrings(raw) or ErrorKind.UNKNOWN
    return ClassifiedError(kind=kind, status=status, message=escape_detail(detail), payload=payload)
