"""
AWS Lambda handler for the portfolio relay.

PURPOSE:
- Entry point for AWS Lambda behind API Gateway (REST v1 or HTTP API v2 proxy events).
- Runs one linear pipeline per request:
  method check -> config/credential check -> body decode -> profile validation
  -> prompt build -> provider call -> output normalisation -> (structured) audit.
- Every step returns a Success or a Failure; the first Failure becomes the
  HTTP response. Unexpected exceptions become a generic 500.

CONTEXT:
- Stateless: configuration and the provider credential are read from the
  environment at the start of each invocation, nothing is cached between requests.
- Logging includes request_id and correlation_id so traces are easy to follow
  in CloudWatch.
"""

from __future__ import annotations
import base64
import binascii
import json
import time
import traceback
import uuid
from typing import Any, Dict, Optional

from portfolio_relay import normalizer, provider
from portfolio_relay.config import ConfigError, RelayConfig
from portfolio_relay.logging_setup import configure_logging
from portfolio_relay.observability import init_observability
from portfolio_relay.profile import validate_profile
from portfolio_relay.prompts import build_prompt
from portfolio_relay.result import Failure, Result, Success
from portfolio_relay.schema_io import audit_portfolio


log = configure_logging()
init_observability()

CORS_METHODS = "POST, OPTIONS"
CORS_HEADERS = "Content-Type, Authorization"


def _cors_headers(origin: str) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": CORS_METHODS,
        "Access-Control-Allow-Headers": CORS_HEADERS,
    }


def _response(body: Optional[Dict[str, Any]], status_code: int = 200, origin: str = "*") -> Dict[str, Any]:
    """
    Wrap a Python dict into an API Gateway compatible response.

    returns:
    - dict – {"statusCode": int, "headers": {...}, "body": "<json-string>"}.
      body is "" when None is given (204 preflight).
    """
    headers = {"Content-Type": "application/json", **_cors_headers(origin)}
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": "" if body is None else json.dumps(body, ensure_ascii=False),
    }


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _headers(event: Dict[str, Any]) -> Dict[str, str]:
    # Header names are case-insensitive; API Gateway v1 keeps the client's casing.
    return {str(k).lower(): v for k, v in _as_dict(event.get("headers")).items()}


def request_method(event: Dict[str, Any]) -> str:
    """HTTP method from a v1 (httpMethod) or v2 (requestContext.http.method) event."""
    method = event.get("httpMethod")
    if not method:
        method = _as_dict(_as_dict(event.get("requestContext")).get("http")).get("method")
    return str(method or "").upper()


def decode_body(event: Dict[str, Any]) -> Result:
    """
    Decode the JSON request body.

    behaviour:
    - Missing/empty body decodes to {} (validation then reports the missing fields).
    - A dict body (direct invocation) is used as-is.
    - Base64 bodies are decoded first when isBase64Encoded is set.

    returns:
    - Success(Any) – decoded JSON value.
    - Failure(MalformedBody) – not base64/UTF-8/JSON.
    """
    raw = event.get("body")
    if raw is None or isinstance(raw, dict):
        return Success(raw or {})
    if not isinstance(raw, str):
        return Failure.malformed_body(f"unsupported body type {type(raw).__name__}")

    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return Failure.malformed_body("invalid base64 payload")

    if raw.strip() == "":
        return Success({})
    try:
        return Success(json.loads(raw))
    except json.JSONDecodeError as e:
        return Failure.malformed_body(f"invalid JSON ({e.msg} at line {e.lineno} column {e.colno})")


def relay(event: Dict[str, Any], config: RelayConfig, api_key: str, logger=log) -> Result:
    """
    Run the validate -> build -> invoke -> normalise pipeline for one decoded request.

    returns:
    - Success(dict) – the success envelope body.
    - Failure – the first failing step's error.
    """
    body = decode_body(event)
    if not body.ok:
        return body

    profile = validate_profile(body.value)
    if not profile.ok:
        return profile

    prompt = build_prompt(profile.value, config)

    raw = provider.invoke(prompt, config, api_key)
    if not raw.ok:
        return raw

    out = normalizer.normalize(raw.value, config)
    if not out.ok or not config.structured:
        return out

    findings = audit_portfolio(out.value["data"], config)
    if findings:
        logger.warning("model_output.audit_findings", count=len(findings), findings=findings[:20])
        if config.enforce_output_schema:
            return Failure.non_conforming_output(findings)
    return out


def handle(event: Dict[str, Any], context: Any = None, environ=None) -> Dict[str, Any]:
    """
    Full request handling with an explicit environment (handy in tests and the CLI).

    flow:
    1) Bind request/correlation IDs for traceability.
    2) OPTIONS -> 204 preflight; any non-POST -> 405.
    3) Resolve RelayConfig and the provider credential; missing -> 500.
    4) relay(...) and convert its Result into an HTTP response.
    5) Any unexpected exception -> 500 with a generic message, traceback logged.
    """
    t0 = time.time()
    if not isinstance(event, dict):
        event = {}

    request_id = getattr(context, "aws_request_id", None) or str(uuid.uuid4())
    correlation_id = _headers(event).get("x-correlation-id") or str(uuid.uuid4())
    rlog = log.bind(request_id=request_id, correlation_id=correlation_id)

    method = request_method(event)
    rlog.info("request.received", method=method)

    origin = "*"
    try:
        if method == "OPTIONS":
            try:
                origin = RelayConfig.from_env(environ).allowed_origin
            except ConfigError as e:
                # Preflight still succeeds with the permissive default origin.
                rlog.warning("config.invalid", error=str(e))
            rlog.info("response.preflight", status=204)
            return _response(None, 204, origin)

        if method != "POST":
            result: Result = Failure.invalid_method(method or None)
        else:
            try:
                config = RelayConfig.from_env(environ)
            except ConfigError as e:
                rlog.error("config.invalid", error=str(e))
                config = None
                result = Failure.invalid_configuration(str(e))

            if config is not None:
                origin = config.allowed_origin
                api_key = config.api_key(environ)
                if not api_key:
                    result = Failure.missing_configuration(config.api_key_env)
                else:
                    result = relay(event, config, api_key, rlog)

    except Exception as e:
        latency_ms = round((time.time() - t0) * 1000, 1)
        rlog.error(
            "response.error",
            kind="InternalError",
            status=500,
            error=f"{type(e).__name__}: {e}",
            traceback=traceback.format_exc(limit=3),
            latency_ms=latency_ms,
        )
        return _response(Failure.internal_error().to_body(), 500, origin)

    latency_ms = round((time.time() - t0) * 1000, 1)
    if isinstance(result, Failure):
        rlog.warning(
            "response.error",
            kind=result.kind,
            status=result.status,
            error=result.message,
            latency_ms=latency_ms,
        )
        return _response(result.to_body(), result.status, origin)

    rlog.info("response.success", status=200, latency_ms=latency_ms)
    return _response(result.value, 200, origin)


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Lambda entry point."""
    return handle(event, context)
