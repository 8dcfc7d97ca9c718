"""
Schema helpers and the structured-output audit.

PURPOSE: Load the PortfolioResponse JSON schema, validate model output against
         it, and check the numeric rules the prompt asks the model to respect
         (total of 100, instrument count, per-instrument and per-sector caps).
CONTEXT: The relay cannot make the model obey; this module only reports what it
         did not obey. The handler logs the findings and rejects the response
         only when RELAY_ENFORCE_OUTPUT_SCHEMA=1.
"""

from __future__ import annotations

import json
import pathlib
from collections import defaultdict
from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft7Validator, ValidationError

from portfolio_relay.config import RelayConfig

SCHEMA_DIR = pathlib.Path(__file__).resolve().parent / "schemas"
PORTFOLIO_SCHEMA = "portfolio_response.schema.json"

# Allowed drift of the allocation total from 100, in percentage points.
TOTAL_TOLERANCE = 0.5


# -------------------- Schema loading utilities -------------------- #

@lru_cache(maxsize=16)
def _load_schema_cached(abs_path: str) -> Dict[str, Any]:
    return json.loads(pathlib.Path(abs_path).read_text(encoding="utf-8"))


def load_schema(name: str) -> Dict[str, Any]:
    """
    Load a JSON schema shipped in ./schemas (with caching).

    raises:
    - FileNotFoundError – if the file does not exist.
    - json.JSONDecodeError – if the file is not valid JSON.
    """
    p = SCHEMA_DIR / name
    if not p.exists():
        raise FileNotFoundError(f"Schema not found at: {p}")
    return _load_schema_cached(str(p))


# -------------------- Validation helpers -------------------- #

def error_to_string(err: Exception) -> str:
    """
    Convert exceptions into readable strings.

    notes:
    - ValidationError messages include a pointer path showing where validation failed.
    """
    if isinstance(err, ValidationError):
        path = "$" + "".join(f"[{p!r}]" if isinstance(p, int) else f".{p}" for p in err.path)
        return f"{err.message} at {path}"
    return f"{type(err).__name__}: {err}"


def schema_findings(instance: Any, schema: Dict[str, Any]) -> List[str]:
    """Every schema violation, not just the first, as readable strings."""
    errors = sorted(Draft7Validator(schema).iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    return [error_to_string(e) for e in errors]


# -------------------- Allocation rules -------------------- #

def _number(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def allocation_findings(data: Dict[str, Any], config: RelayConfig) -> List[str]:
    entries = [e for e in data.get("cartera") or [] if isinstance(e, dict)]
    if not entries:
        return []

    findings: List[str] = []
    if len(entries) > config.max_instruments:
        findings.append(f"{len(entries)} instruments, maximum is {config.max_instruments}")

    total = 0.0
    by_sector: Dict[str, float] = defaultdict(float)
    for e in entries:
        pct = _number(e.get("porcentaje"))
        if pct is None:
            continue
        total += pct
        by_sector[str(e.get("sector") or "?")] += pct
        if pct > config.max_weight_pct:
            name = e.get("ticker") or e.get("instrumento") or "?"
            findings.append(f"{name} weighs {pct:g}%, cap is {config.max_weight_pct}%")

    if abs(total - 100.0) > TOTAL_TOLERANCE:
        findings.append(f"allocation totals {total:g}%, expected 100%")

    # Prefer the model's own sector table when it gave one.
    sectors = data.get("asignacionSectorial")
    if isinstance(sectors, list) and sectors:
        by_sector = defaultdict(float)
        for s in sectors:
            if isinstance(s, dict) and _number(s.get("porcentaje")) is not None:
                by_sector[str(s.get("sector") or "?")] += _number(s["porcentaje"])

    for sector, pct in sorted(by_sector.items()):
        if pct > config.max_sector_pct:
            findings.append(f"sector {sector} weighs {pct:g}%, cap is {config.max_sector_pct}%")
    if len(by_sector) < config.min_sectors:
        findings.append(f"{len(by_sector)} sectors, minimum is {config.min_sectors}")

    return findings


def audit_portfolio(data: Dict[str, Any], config: RelayConfig) -> List[str]:
    """
    Compare structured model output with the portfolio contract.

    returns:
    - list[str] – empty when the output conforms; otherwise one entry per problem.
    """
    return schema_findings(data, load_schema(PORTFOLIO_SCHEMA)) + allocation_findings(data, config)


__all__ = [
    "load_schema",
    "error_to_string",
    "schema_findings",
    "allocation_findings",
    "audit_portfolio",
]
