"""
Relay configuration.

PURPOSE:
- Collect every tunable of the relay (provider endpoint, model, output mode,
  prompt constraints) into one immutable object that is passed explicitly to
  each pipeline step.

CONTEXT:
- Built from the process environment at the start of every invocation by the
  Lambda handler. The provider credential itself is not stored here: the config
  only names the env var, and api_key() reads it when the request is handled,
  so a rotated secret is picked up without a restart.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

OUTPUT_MODES = ("text", "structured")
CALL_SHAPES = ("responses", "chat")

DEFAULT_MARKET = "Chilean stocks listed on the Santiago Stock Exchange"


class ConfigError(ValueError):
    """Raised when an environment value cannot be turned into a valid setting."""


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: Optional[int] = None) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _get_choice(env: Mapping[str, str], name: str, default: str, choices) -> str:
    value = (env.get(name) or "").strip().lower() or default
    if value not in choices:
        raise ConfigError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


@dataclass(frozen=True)
class RelayConfig:
    api_key_env: str = "OPENAI_API_KEY"
    output_mode: str = "text"
    call_shape: str = "responses"
    model: str = "gpt-4o-mini"
    temperature: float = 0.4
    base_url: str = "https://api.openai.com/v1"
    timeout_s: Optional[float] = None
    market: str = DEFAULT_MARKET
    language: str = "Spanish"
    currency: str = "CLP"
    max_instruments: int = 12
    max_weight_pct: int = 20
    max_sector_pct: int = 40
    min_sectors: int = 4
    preview_chars: int = 400
    enforce_output_schema: bool = False
    allowed_origin: str = "*"

    @property
    def structured(self) -> bool:
        return self.output_mode == "structured"

    def api_key(self, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """
        Read the provider credential at call time.

        returns:
        - str or None – None when the variable is unset or blank.
        """
        env = os.environ if environ is None else environ
        value = env.get(self.api_key_env, "")
        return value.strip() or None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """
        Build a config from environment variables (RELAY_* names).

        raises:
        - ConfigError – on an unknown mode/shape, a non-numeric value, or a
          cap/preview setting below 1. Blank values fall back to the defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            api_key_env=env.get("RELAY_API_KEY_ENV") or defaults.api_key_env,
            output_mode=_get_choice(env, "RELAY_OUTPUT_MODE", defaults.output_mode, OUTPUT_MODES),
            call_shape=_get_choice(env, "RELAY_CALL_SHAPE", defaults.call_shape, CALL_SHAPES),
            model=env.get("RELAY_MODEL") or defaults.model,
            temperature=_get_float(env, "RELAY_TEMPERATURE", defaults.temperature),
            base_url=(env.get("RELAY_BASE_URL") or defaults.base_url).rstrip("/"),
            timeout_s=_get_float(env, "RELAY_TIMEOUT_S", defaults.timeout_s),
            market=env.get("RELAY_MARKET") or defaults.market,
            language=env.get("RELAY_LANGUAGE") or defaults.language,
            currency=env.get("RELAY_CURRENCY") or defaults.currency,
            max_instruments=_get_int(env, "RELAY_MAX_INSTRUMENTS", defaults.max_instruments, minimum=1),
            max_weight_pct=_get_int(env, "RELAY_MAX_WEIGHT_PCT", defaults.max_weight_pct, minimum=1),
            max_sector_pct=_get_int(env, "RELAY_MAX_SECTOR_PCT", defaults.max_sector_pct, minimum=1),
            min_sectors=_get_int(env, "RELAY_MIN_SECTORS", defaults.min_sectors, minimum=1),
            preview_chars=_get_int(env, "RELAY_PREVIEW_CHARS", defaults.preview_chars, minimum=1),
            enforce_output_schema=env.get("RELAY_ENFORCE_OUTPUT_SCHEMA", "0") == "1",
            allowed_origin=env.get("RELAY_ALLOWED_ORIGIN") or defaults.allowed_origin,
        )
