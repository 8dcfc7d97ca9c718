# PURPOSE: Turn a decoded request body into a validated InvestorProfile.
# CONTEXT: Callers may send Spanish or English field names; both map onto one
#          canonical name before validation. Missing fields are reported together.

from __future__ import annotations
from typing import Any, Dict, List, Tuple, TypedDict

from portfolio_relay.result import Failure, Result, Success

# Canonical name -> accepted request keys (localized first).
FIELD_ALIASES: Dict[str, Tuple[str, str]] = {
    "capital": ("monto", "capital"),
    "horizon": ("horizonte", "horizon"),
    "risk": ("riesgo", "risk"),
    "objective": ("objetivo", "objective"),
    "constraints": ("restricciones", "constraints"),
}

REQUIRED_FIELDS = ("capital", "horizon", "risk", "objective")

# Interpolated into the prompt when the caller gave no constraints.
NO_CONSTRAINTS = "Ninguna"


class InvestorProfile(TypedDict):
    capital: str
    horizon: str
    risk: str
    objective: str
    constraints: str


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def resolve_field(payload: Dict[str, Any], canonical: str) -> str:
    """Return the first non-blank value among the aliases of `canonical`, trimmed."""
    for key in FIELD_ALIASES[canonical]:
        value = _as_text(payload.get(key))
        if value:
            return value
    return ""


def field_label(canonical: str) -> str:
    """Human-readable 'localized/english' label used in error messages."""
    return "/".join(FIELD_ALIASES[canonical])


def validate_profile(payload: Any) -> Result:
    """
    Validate a decoded request body.

    returns:
    - Success(InvestorProfile) when capital, horizon, risk and objective are all present.
    - Failure(MalformedBody) when the body is not a JSON object.
    - Failure(MissingField) listing every missing field, in canonical order.
    """
    if not isinstance(payload, dict):
        return Failure.malformed_body(f"expected a JSON object, got {type(payload).__name__}")

    values = {name: resolve_field(payload, name) for name in FIELD_ALIASES}
    missing: List[str] = [name for name in REQUIRED_FIELDS if not values[name]]
    if missing:
        return Failure.missing_fields([field_label(n) for n in missing], missing)

    return Success(InvestorProfile(
        capital=values["capital"],
        horizon=values["horizon"],
        risk=values["risk"],
        objective=values["objective"],
        constraints=values["constraints"] or NO_CONSTRAINTS,
    ))
