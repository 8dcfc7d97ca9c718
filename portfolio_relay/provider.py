# PURPOSE: Send a built prompt to the generative-text provider and return its JSON reply.
# CONTEXT: Two request shapes are supported:
#          - "responses": POST {base_url}/responses with system/user input blocks.
#          - "chat":      POST {base_url}/chat/completions with a messages array and,
#                         in structured mode, a strict-JSON response_format hint.
#          No retries and, unless RELAY_TIMEOUT_S is set, no client timeout: the
#          Lambda duration limit is the outer bound.

from __future__ import annotations
from typing import Any, Dict, Optional

import requests

from portfolio_relay.config import RelayConfig
from portfolio_relay.logging_setup import get_logger
from portfolio_relay.observability import xray_segment
from portfolio_relay.prompts import Prompt
from portfolio_relay.result import Failure, Result, Success

log = get_logger(__name__)

# Raw provider bodies quoted in error messages are cut to this many characters.
ERROR_DETAIL_CHARS = 300


def build_request(prompt: Prompt, config: RelayConfig) -> tuple[str, Dict[str, Any]]:
    """
    Return (url, json_body) for the configured call shape.
    """
    if config.call_shape == "chat":
        body: Dict[str, Any] = {
            "model": config.model,
            "temperature": config.temperature,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
        }
        if config.structured:
            body["response_format"] = {"type": "json_object"}
        return f"{config.base_url}/chat/completions", body

    body = {
        "model": config.model,
        "temperature": config.temperature,
        "input": [
            {"role": "system", "content": [{"type": "input_text", "text": prompt.system}]},
            {"role": "user", "content": [{"type": "input_text", "text": prompt.user}]},
        ],
    }
    return f"{config.base_url}/responses", body


def provider_error_message(resp: requests.Response) -> str:
    """
    Pull a readable message out of a provider error response.

    Prefers the provider's own error.message (OpenAI style); falls back to a
    truncated raw body, then to the HTTP reason phrase.
    """
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        if data.get("message"):
            return str(data["message"])
    text = (resp.text or "").strip()
    if text:
        return text[:ERROR_DETAIL_CHARS]
    return resp.reason or "no details"


def invoke(prompt: Prompt, config: RelayConfig, api_key: str) -> Result:
    """
    Call the provider once.

    returns:
    - Success(dict) – the decoded JSON body of a 2xx response.
    - Failure(GatewayFailure) – transport error (DNS, connection reset, timeout).
    - Failure(ProviderError) – non-2xx status; 4xx forwarded, 5xx escalated to 502.
    - Failure(ProviderProtocolError) – 2xx whose body is not a JSON object.
    """
    url, body = build_request(prompt, config)
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    log.info(
        "provider.request",
        url=url,
        model=config.model,
        call_shape=config.call_shape,
        prompt_chars=len(prompt.system) + len(prompt.user),
    )

    try:
        with xray_segment("provider.invoke"):
            resp = requests.post(url, json=body, headers=headers, timeout=config.timeout_s)
    except requests.RequestException as e:
        log.error("provider.unreachable", error_type=type(e).__name__, error=str(e))
        return Failure.gateway_failure(type(e).__name__)

    if not resp.ok:
        message = provider_error_message(resp)
        log.warning("provider.error", upstream_status=resp.status_code, error=message)
        return Failure.provider_error(resp.status_code, message)

    try:
        data: Optional[Any] = resp.json()
    except ValueError as e:
        log.error("provider.bad_body", upstream_status=resp.status_code, error=str(e))
        return Failure.provider_protocol_error("body is not valid JSON")
    if not isinstance(data, dict):
        log.error("provider.bad_body", upstream_status=resp.status_code, body_type=type(data).__name__)
        return Failure.provider_protocol_error(f"expected a JSON object, got {type(data).__name__}")

    log.info("provider.response", upstream_status=resp.status_code)
    return Success(data)
