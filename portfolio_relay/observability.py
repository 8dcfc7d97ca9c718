"""
Observability bootstrap.

PURPOSE:
- Optionally enables AWS X-Ray distributed tracing when USE_XRAY=1.
- Patches requests so the outbound provider call shows up as a subsegment.
- Degrades to a no-op if X-Ray is not enabled or the SDK is not installed
  (install the 'tracing' extra to get it).

CONTEXT:
- init_observability() is called once by the Lambda handler at import time.
- Logging is configured separately in logging_setup.py.
"""
from __future__ import annotations
import os


def init_observability():
    """
    Optionally initialise AWS X-Ray instrumentation.

    returns:
    - xray_recorder object if successfully configured.
    - None if X-Ray is disabled or not available.
    """
    if os.getenv("USE_XRAY", "0") != "1":
        return None
    try:
        from aws_xray_sdk.core import xray_recorder, patch
        xray_recorder.configure(service=os.getenv("XRAY_SERVICE_NAME", "PortfolioRelay"))
        patch(["requests"])
        return xray_recorder
    except Exception:
        # Tracing must never block a request.
        return None


class xray_segment:
    """
    Context manager for a manual subsegment around one unit of work.

    usage:
    >>> with xray_segment("provider.invoke"):
    >>>     resp = requests.post(...)

    Does nothing when tracing is disabled; exceptions raised inside the block
    still propagate.
    """

    def __init__(self, name: str):
        self.name = name
        self.sub = None

    def __enter__(self):
        if os.getenv("USE_XRAY", "0") != "1":
            return self
        try:
            from aws_xray_sdk.core import xray_recorder
            self.sub = xray_recorder.begin_subsegment(self.name)
        except Exception:
            self.sub = None
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.sub is None:
            return False
        try:
            from aws_xray_sdk.core import xray_recorder
            if exc is not None:
                self.sub.add_exception(exc, [])
            xray_recorder.end_subsegment()
        except Exception:
            pass
        return False
