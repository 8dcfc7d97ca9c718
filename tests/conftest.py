import json

import pytest


class FakeResponse:
    """Just enough of requests.Response for the provider client."""

    def __init__(self, status_code=200, payload=None, text=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class Ctx:
    aws_request_id = "req-test"


SAMPLE_PORTFOLIO = {
    "resumenEjecutivo": "Cartera simulada diversificada.",
    "supuestosMacro": ["Inflación convergiendo a 3%"],
    "cartera": [
        {"instrumento": "Banco de Chile", "ticker": "CHILE", "sector": "Financiero", "porcentaje": 20, "rol": "Núcleo"},
        {"instrumento": "SQM", "ticker": "SQM-B", "sector": "Minería", "porcentaje": 20, "rol": "Crecimiento"},
        {"instrumento": "Enel Chile", "ticker": "ENELCHILE", "sector": "Utilities", "porcentaje": 20, "rol": "Defensivo"},
        {"instrumento": "Falabella", "ticker": "FALABELLA", "sector": "Retail", "porcentaje": 20, "rol": "Cíclico"},
        {"instrumento": "Parque Arauco", "ticker": "PARAUCO", "sector": "Inmobiliario", "porcentaje": 20, "rol": "Renta"},
    ],
    "asignacionSectorial": [
        {"sector": "Financiero", "porcentaje": 20},
        {"sector": "Minería", "porcentaje": 20},
        {"sector": "Utilities", "porcentaje": 20},
        {"sector": "Retail", "porcentaje": 20},
        {"sector": "Inmobiliario", "porcentaje": 20},
    ],
    "logicaCartera": [{"titulo": "Diversificación", "detalle": "Cinco sectores."}],
    "estimaciones": {
        "retornoAnual": {"min": 4, "max": 9},
        "volatilidad": {"min": 12, "max": 18},
        "drawdownMaximo": {"min": -25, "max": -10},
        "nota": "Rangos ilustrativos, no garantizados.",
    },
    "riesgosPrincipales": ["Precio del cobre"],
    "planMonitoreo": ["Revisión trimestral"],
    "notaImplementacion": "Simulación educativa.",
}


@pytest.fixture
def profile_body():
    return {
        "monto": "10000000",
        "horizonte": "5",
        "riesgo": "moderado",
        "objetivo": "crecimiento de largo plazo",
    }


@pytest.fixture
def fake_post(monkeypatch):
    """
    Replace requests.post with a recorder.

    usage: calls = fake_post(FakeResponse(...)) or fake_post(SomeException(...)).
    Each call is recorded as a dict with url/json/headers/timeout.
    """
    def install(outcome):
        calls = []

        def _post(url, json=None, headers=None, timeout=None):
            calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        monkeypatch.setattr("portfolio_relay.provider.requests.post", _post)
        return calls

    return install
