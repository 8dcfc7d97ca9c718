# PURPOSE: Turn a raw provider reply into the success payload returned to the caller.
# CONTEXT: Handles both provider reply shapes (flat output_text, or nested typed
#          content blocks) plus chat-completions replies. In structured mode the
#          text is parsed as JSON after removing optional ``` fences.

from __future__ import annotations
import json
import re
from typing import Any, Dict, List

from portfolio_relay.config import RelayConfig
from portfolio_relay.result import Failure, Result, Success

TEXT_BLOCK_TYPES = ("output_text", "text")

# Leading fence, optionally tagged json, and trailing fence.
_FENCE_START = re.compile(r"^```[ \t]*(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\r?\n?```[ \t]*$")


def _blocks_text(content: Any) -> List[str]:
    parts: List[str] = []
    if not isinstance(content, list):
        return parts
    for blk in content:
        if isinstance(blk, dict) and blk.get("type") in TEXT_BLOCK_TYPES and isinstance(blk.get("text"), str):
            parts.append(blk["text"])
    return parts


def extract_text(raw: Dict[str, Any]) -> str:
    """
    Locate the generated text in a provider reply and trim it.

    lookup order:
    1) top-level "output_text" string.
    2) "output" items -> "content" blocks of type output_text/text, concatenated.
    3) chat shape: choices[0].message.content (string, or a list of text blocks).

    returns:
    - str – possibly empty when nothing usable was found.
    """
    flat = raw.get("output_text")
    if isinstance(flat, str) and flat.strip():
        return flat.strip()

    parts: List[str] = []
    output = raw.get("output")
    if isinstance(output, list):
        for item in output:
            if isinstance(item, dict):
                parts.extend(_blocks_text(item.get("content")))
    if parts:
        return "".join(parts).strip()

    choices = raw.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str):
            return content.strip()
        return "".join(_blocks_text(content)).strip()

    return ""


def strip_code_fences(text: str) -> str:
    text = text.strip()
    text = _FENCE_START.sub("", text, count=1)
    text = _FENCE_END.sub("", text, count=1)
    return text.strip()


def preview(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def parse_structured(text: str, config: RelayConfig) -> Result:
    cleaned = strip_code_fences(text)
    if not cleaned:
        # A reply made only of fences carries no content at all.
        return Failure.empty_output()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return Failure.unparseable_output(e.msg, preview(cleaned, config.preview_chars))
    if not isinstance(data, dict):
        return Failure.unparseable_output(
            f"expected a JSON object, got {type(data).__name__}",
            preview(cleaned, config.preview_chars),
        )
    return Success(data)


def normalize(raw: Dict[str, Any], config: RelayConfig) -> Result:
    """
    Build the success body for the configured output mode.

    returns:
    - Success({"ok": True, "result": str}) in text mode.
    - Success({"ok": True, "data": dict}) in structured mode.
    - Failure(EmptyOutput) when no text is left, including after fence stripping.
    - Failure(UnparseableModelOutput) when structured text is not a JSON object.
    """
    text = extract_text(raw)
    if not text:
        return Failure.empty_output()

    if not config.structured:
        return Success({"ok": True, "result": text})

    parsed = parse_structured(text, config)
    if not parsed.ok:
        return parsed
    return Success({"ok": True, "data": parsed.value})
