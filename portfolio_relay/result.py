"""
Explicit step results for the relay pipeline.

PURPOSE:
- Each pipeline step (validate, invoke, normalise, audit) returns either a
  Success carrying its value or a Failure describing what went wrong.
- The Lambda handler composes these into the final HTTP response, so no step
  relies on exceptions bubbling up to reach the boundary.

CONTEXT:
- Failure.kind is the error taxonomy exposed to callers in the "kind" field of
  the error envelope.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar, Union

T = TypeVar("T")

# Generic message for anything we did not anticipate; details go to the log only.
GENERIC_ERROR = "Failed to generate simulation"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class Failure:
    """
    A tagged, already-classified error.

    attributes:
    - kind: str – taxonomy name, e.g. 'MissingField' or 'ProviderError'.
    - status: int – HTTP status the handler should answer with.
    - message: str – user-facing error text.
    - extra: dict – additional envelope fields (missing fields, preview, upstream status).
    """
    kind: str
    status: int
    message: str
    extra: Dict[str, Any] = field(default_factory=dict)
    ok: bool = False

    def to_body(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, "kind": self.kind, **self.extra}

    # ---- constructors, one per taxonomy entry ---- #

    @classmethod
    def missing_configuration(cls, name: str) -> "Failure":
        return cls("MissingConfiguration", 500, f"Server misconfiguration: missing {name}")

    @classmethod
    def invalid_configuration(cls, reason: str) -> "Failure":
        return cls("MissingConfiguration", 500, f"Server misconfiguration: {reason}")

    @classmethod
    def invalid_method(cls, method: Optional[str]) -> "Failure":
        return cls("InvalidMethod", 405, "Method not allowed", {"method": method})

    @classmethod
    def malformed_body(cls, reason: str) -> "Failure":
        return cls("MalformedBody", 400, f"Malformed request body: {reason}")

    @classmethod
    def missing_fields(cls, labels: Iterable[str], canonical: Iterable[str]) -> "Failure":
        labels = list(labels)
        return cls(
            "MissingField",
            400,
            "Missing required field(s): " + ", ".join(labels),
            {"missing": list(canonical)},
        )

    @classmethod
    def gateway_failure(cls, reason: str) -> "Failure":
        return cls("GatewayFailure", 502, f"Could not reach the model provider: {reason}")

    @classmethod
    def provider_error(cls, upstream_status: int, message: str) -> "Failure":
        # Provider 5xx is our upstream failing: escalate to 502. 4xx is forwarded as-is.
        status = 502 if upstream_status >= 500 else upstream_status
        return cls(
            "ProviderError",
            status,
            f"Model provider error ({upstream_status}): {message}",
            {"upstream_status": upstream_status},
        )

    @classmethod
    def provider_protocol_error(cls, reason: str) -> "Failure":
        return cls("ProviderProtocolError", 502, f"Unexpected response from model provider: {reason}")

    @classmethod
    def empty_output(cls) -> "Failure":
        return cls("EmptyOutput", 502, "Empty response from model")

    @classmethod
    def unparseable_output(cls, reason: str, preview: str) -> "Failure":
        return cls(
            "UnparseableModelOutput",
            502,
            f"Model returned invalid JSON: {reason}",
            {"preview": preview},
        )

    @classmethod
    def non_conforming_output(cls, findings: Iterable[str]) -> "Failure":
        return cls(
            "NonConformingModelOutput",
            502,
            "Model output does not match the portfolio contract",
            {"findings": list(findings)},
        )

    @classmethod
    def internal_error(cls) -> "Failure":
        return cls("InternalError", 500, GENERIC_ERROR)


Result = Union[Success[Any], Failure]


__all__ = ["Success", "Failure", "Result", "GENERIC_ERROR"]
