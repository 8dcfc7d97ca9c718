#!/usr/bin/env python3
# PURPOSE: Command-line interface to run one portfolio request through the relay locally.
# CONTEXT: Builds the same API Gateway event the deployed function receives, so the
#          CLI exercises the exact handler code path. Needs the provider key in the
#          environment (OPENAI_API_KEY unless RELAY_API_KEY_ENV says otherwise).

import argparse
import json
import os
import sys

from portfolio_relay.lambda_handler import handle


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Request a simulated portfolio from the relay.")
    p.add_argument("--capital", "--monto", dest="capital", help="amount to invest")
    p.add_argument("--horizon", "--horizonte", dest="horizon", help="horizon in years")
    p.add_argument("--risk", "--riesgo", dest="risk", help="risk level, e.g. moderado")
    p.add_argument("--objective", "--objetivo", dest="objective", help="investment goal")
    p.add_argument("--constraints", "--restricciones", dest="constraints", default="",
                   help="optional restrictions")
    p.add_argument("--mode", choices=["text", "structured"], help="override RELAY_OUTPUT_MODE")
    p.add_argument("--shape", choices=["responses", "chat"], help="override RELAY_CALL_SHAPE")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    env = dict(os.environ)
    if args.mode:
        env["RELAY_OUTPUT_MODE"] = args.mode
    if args.shape:
        env["RELAY_CALL_SHAPE"] = args.shape

    # Unset flags are left out so the relay reports them as missing.
    payload = {k: v for k, v in {
        "capital": args.capital,
        "horizon": args.horizon,
        "risk": args.risk,
        "objective": args.objective,
        "constraints": args.constraints,
    }.items() if v}

    event = {
        "httpMethod": "POST",
        "headers": {"content-type": "application/json", "x-correlation-id": "cli"},
        "body": json.dumps(payload),
    }
    resp = handle(event, environ=env)

    body = json.loads(resp["body"]) if resp["body"] else {}
    if "result" in body:
        print(body["result"])
    else:
        print(json.dumps(body, indent=2, ensure_ascii=False))
    return 0 if resp["statusCode"] == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
