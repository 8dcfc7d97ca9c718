# PURPOSE: Build the system + user instructions sent to the model.
# CONTEXT: Templates live in ./templates/*.md and are loaded once at import time.
#          Constraints (instrument count, caps, language) are stated as rules
#          in the text; the model is not guaranteed to follow them, see
#          schema_io.audit_portfolio for the after-the-fact check.

from __future__ import annotations
import os
from dataclasses import dataclass
from string import Template
from typing import Dict

from portfolio_relay.config import RelayConfig
from portfolio_relay.profile import InvestorProfile

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")


def _load_template(name: str) -> Template:
    with open(os.path.join(TEMPLATE_DIR, name), "r", encoding="utf-8") as f:
        return Template(f.read())


SYSTEM_TEMPLATE = _load_template("system.md")
USER_TEMPLATES: Dict[str, Template] = {
    "text": _load_template("user_text.md"),
    "structured": _load_template("user_structured.md"),
}


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str

    def combined(self) -> str:
        """Single instruction string, for providers without a separate system role."""
        return f"{self.system}\n\n{self.user}"


def _constraint_values(config: RelayConfig) -> Dict[str, str]:
    return {
        "market": config.market,
        "language": config.language,
        "currency": config.currency,
        "max_instruments": str(config.max_instruments),
        "max_weight_pct": str(config.max_weight_pct),
        "max_sector_pct": str(config.max_sector_pct),
        "min_sectors": str(config.min_sectors),
    }


def build_prompt(profile: InvestorProfile, config: RelayConfig) -> Prompt:
    """
    Interpolate a validated profile into the templates for the configured output mode.

    Profile values are inserted verbatim; only the template is parsed for
    placeholders, so a '$' typed by the caller is left alone.
    """
    values = _constraint_values(config)
    system = SYSTEM_TEMPLATE.substitute(values)
    user = USER_TEMPLATES[config.output_mode].substitute(values, **profile)
    return Prompt(system=system.strip(), user=user.strip())
