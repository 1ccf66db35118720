"""
Request admission gate for JSON write requests.

Contract
--------
- Only write methods (POST/PUT/PATCH) are inspected; everything else is forwarded.
- Paths matching one of the configured exception patterns are forwarded untouched
  (e.g. multipart uploads under `api/v1/files/*`).
- A write request must declare a JSON media type (`application/json` or
  `application/<token>+json`), otherwise it is rejected with 415.
- A non-empty body must parse as strict JSON, otherwise it is rejected with 400.
  An empty body is always accepted.

Design
------
- `evaluate()` is a pure function of (request, patterns): no I/O, no logging, no
  mutation. The transport adapter (`core.middleware.EnsureJsonRequestMiddleware`)
  turns a `Reject` into an HTTP response.
- `PathPatterns` compiles glob-style patterns once; instances are immutable and
  safe to share across threads.
- The request body is only touched when the decision depends on it, so adapters
  can expose it lazily.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping, Optional, Pattern, Protocol, Tuple, Union

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})

# application/json, application/vnd.api+json, application/problem+json; charset=...
_JSON_CONTENT_TYPE = re.compile(r"^application/(json|[\w.+-]+\+json)(;|$)", re.IGNORECASE | re.ASCII)

UNSUPPORTED_MEDIA_TYPE_MESSAGE = "Requests must use Content-Type: application/json"


class IncomingRequest(Protocol):
    """Minimal request surface the gate reads."""

    method: str
    path: str
    headers: Mapping[str, str]
    body: bytes


@dataclass(frozen=True)
class RequestSnapshot:
    """Immutable, framework-free `IncomingRequest` (tests, non-Django callers)."""

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


class RejectionKind(Enum):
    """Rejection taxonomy: (HTTP status, short error label)."""

    UNSUPPORTED_MEDIA_TYPE = (415, "Unsupported Media Type")
    MALFORMED_JSON = (400, "Bad Request")

    @property
    def status_code(self) -> int:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]


@dataclass(frozen=True)
class Forward:
    """Let the request continue down the handler chain unchanged."""


@dataclass(frozen=True)
class Reject:
    """Short-circuit the request with a JSON error envelope."""

    status_code: int
    kind: RejectionKind
    message: str

    @classmethod
    def of(cls, kind: RejectionKind, message: str) -> "Reject":
        return cls(status_code=kind.status_code, kind=kind, message=message)

    def as_payload(self) -> dict:
        """Envelope clients can branch on: {"error": <label>, "message": <detail>}."""
        return {"error": self.kind.label, "message": self.message}


FORWARD = Forward()

GateDecision = Union[Forward, Reject]


def _compile_glob(pattern: str) -> Pattern[str]:
    # Whole-path match; `*` spans segments (`api/v1/files/*` covers `api/v1/files/a/b`).
    return re.compile(re.escape(pattern).replace(r"\*", ".*"), re.DOTALL)


@dataclass(frozen=True)
class PathPatterns:
    """
    Ordered, immutable set of glob-style path patterns.

    Paths are compared without leading/trailing slashes (`api/v1/files/x`), and
    matching is case-sensitive. A literal pattern equal to the path always matches.
    """

    patterns: Tuple[str, ...] = ()
    _compiled: Tuple[Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        patterns = tuple(self.patterns)
        object.__setattr__(self, "patterns", patterns)
        object.__setattr__(self, "_compiled", tuple(_compile_glob(p) for p in patterns))

    def matches(self, path: str) -> bool:
        """Return True when `path` matches at least one pattern."""
        return any(rx.fullmatch(path) for rx in self._compiled)

    def __len__(self) -> int:
        return len(self.patterns)


def normalize_path(path: str) -> str:
    """Strip surrounding slashes; the application root becomes "/"."""
    trimmed = path.strip("/")
    return trimmed or "/"


def is_json_content_type(value: Optional[str]) -> bool:
    """True for `application/json` and `application/<token>+json` (parameters allowed)."""
    return bool(_JSON_CONTENT_TYPE.match(value or ""))


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, val in headers.items():
        if key.lower() == lowered:
            return val
    return ""


def _reject_constant(name: str):
    # json accepts NaN/Infinity by default; they are not valid JSON text.
    raise ValueError(f"Invalid literal {name!r}")


def json_syntax_error(raw: bytes) -> Optional[str]:
    """
    Return a parser diagnostic when `raw` is not valid JSON text, else None.

    The body is decoded as strict UTF-8 first: `json.loads` would otherwise sniff
    UTF-16/32 and drop a UTF-8 BOM, which downstream parsers do not. Integers are
    parsed as `Decimal` so long numbers are not limited by int conversion.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        return f"Malformed UTF-8 characters ({exc.reason})"
    try:
        json.loads(text, parse_constant=_reject_constant, parse_int=Decimal)
    except ValueError as exc:
        return str(exc)
    except RecursionError:
        return "Maximum stack depth exceeded"
    return None


def evaluate(request: IncomingRequest, except_paths: Union[PathPatterns, Iterable[str]] = ()) -> GateDecision:
    """
    Decide whether a request may proceed.

    Args:
        request: anything exposing `method`, `path`, `headers` and `body`.
        except_paths: exempt path patterns (a `PathPatterns` or plain strings).

    Returns:
        `FORWARD`, or a `Reject` carrying status code, kind and message.
    """
    if request.method.upper() not in WRITE_METHODS:
        return FORWARD

    if not isinstance(except_paths, PathPatterns):
        except_paths = PathPatterns(except_paths)
    if except_paths.matches(normalize_path(request.path)):
        return FORWARD

    if not is_json_content_type(_header(request.headers, "Content-Type")):
        return Reject.of(RejectionKind.UNSUPPORTED_MEDIA_TYPE, UNSUPPORTED_MEDIA_TYPE_MESSAGE)

    raw = request.body
    if not raw:
        return FORWARD

    error = json_syntax_error(raw)
    if error is not None:
        return Reject.of(RejectionKind.MALFORMED_JSON, f"Malformed JSON: {error}")
    return FORWARD
