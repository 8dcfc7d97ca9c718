import pytest

from portfolio_relay.observability import init_observability, xray_segment


def test_init_observability_noop_by_default(monkeypatch):
    monkeypatch.delenv("USE_XRAY", raising=False)
    assert init_observability() is None


def test_xray_segment_ctx_noop_without_recorder(monkeypatch):
    monkeypatch.delenv("USE_XRAY", raising=False)
    with xray_segment("fake-segment") as seg:
        pass
    assert seg.sub is None


def test_xray_segment_does_not_swallow_errors(monkeypatch):
    monkeypatch.delenv("USE_XRAY", raising=False)
    with pytest.raises(RuntimeError):
        with xray_segment("boom"):
            raise RuntimeError("boom")
