import copy

import pytest
from jsonschema import ValidationError, validate

from conftest import SAMPLE_PORTFOLIO
from portfolio_relay.config import RelayConfig
from portfolio_relay.schema_io import (
    audit_portfolio,
    error_to_string,
    load_schema,
)


def test_load_schema_reads_portfolio_response():
    schema = load_schema("portfolio_response.schema.json")
    assert schema.get("title") == "PortfolioResponse"


def test_load_schema_missing_file():
    with pytest.raises(FileNotFoundError):
        load_schema("nope.schema.json")


def test_sample_conforms():
    assert audit_portfolio(SAMPLE_PORTFOLIO, RelayConfig()) == []


def test_missing_section_is_reported():
    data = copy.deepcopy(SAMPLE_PORTFOLIO)
    del data["planMonitoreo"]
    findings = audit_portfolio(data, RelayConfig())
    assert any("'planMonitoreo' is a required property" in f for f in findings)


def test_allocation_total_and_caps():
    data = copy.deepcopy(SAMPLE_PORTFOLIO)
    data["cartera"][0]["porcentaje"] = 35
    data["cartera"][1]["porcentaje"] = 5
    data["cartera"][2]["porcentaje"] = 10
    findings = audit_portfolio(data, RelayConfig())
    assert "CHILE weighs 35%, cap is 20%" in findings
    assert "allocation totals 90%, expected 100%" in findings


def test_too_many_instruments_and_sector_cap():
    data = copy.deepcopy(SAMPLE_PORTFOLIO)
    data["asignacionSectorial"] = [
        {"sector": "Financiero", "porcentaje": 60},
        {"sector": "Minería", "porcentaje": 40},
    ]
    cfg = RelayConfig(max_instruments=4)
    findings = audit_portfolio(data, cfg)
    assert "5 instruments, maximum is 4" in findings
    assert "sector Financiero weighs 60%, cap is 40%" in findings
    assert "2 sectors, minimum is 4" in findings


def test_string_percentage_is_a_schema_finding():
    data = copy.deepcopy(SAMPLE_PORTFOLIO)
    data["cartera"][0]["porcentaje"] = "20%"
    findings = audit_portfolio(data, RelayConfig())
    assert any("$.cartera[0].porcentaje" in f for f in findings)


def test_error_to_string_validationerror_path():
    schema = {"type": "object", "properties": {"x": {"type": "number"}}, "required": ["x"]}
    with pytest.raises(ValidationError) as e:
        validate({"x": "nope"}, schema)
    msg = error_to_string(e.value)
    assert "at $.x" in msg
