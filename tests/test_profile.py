from portfolio_relay.profile import NO_CONSTRAINTS, validate_profile


def test_only_risk_lists_every_missing_field():
    out = validate_profile({"riesgo": "alto"})
    assert out.ok is False
    assert out.kind == "MissingField"
    assert out.status == 400
    assert out.extra["missing"] == ["capital", "horizon", "objective"]
    for label in ("monto/capital", "horizonte/horizon", "objetivo/objective"):
        assert label in out.message
    assert "riesgo/risk" not in out.message


def test_empty_body_reports_all_four():
    out = validate_profile({})
    assert out.extra["missing"] == ["capital", "horizon", "risk", "objective"]


def test_whitespace_counts_as_missing():
    out = validate_profile({"capital": "  ", "horizon": "5", "risk": "bajo", "objective": "\t"})
    assert out.ok is False
    assert out.extra["missing"] == ["capital", "objective"]


def test_spanish_and_english_names_are_equivalent(profile_body):
    english = {
        "capital": "10000000",
        "horizon": "5",
        "risk": "moderado",
        "objective": "crecimiento de largo plazo",
    }
    a = validate_profile(profile_body)
    b = validate_profile(english)
    assert a.ok and b.ok
    assert a.value == b.value


def test_blank_alias_falls_through_to_other_name():
    out = validate_profile({"monto": " ", "capital": 500, "horizon": 3, "risk": "alto", "objective": "x"})
    assert out.ok
    assert out.value["capital"] == "500"
    assert out.value["horizon"] == "3"


def test_values_are_trimmed(profile_body):
    profile_body["objetivo"] = "  jubilación  "
    out = validate_profile(profile_body)
    assert out.value["objective"] == "jubilación"


def test_constraints_default_to_sentinel(profile_body):
    for constraints in (None, "", "   "):
        body = dict(profile_body)
        if constraints is not None:
            body["restricciones"] = constraints
        assert validate_profile(body).value["constraints"] == NO_CONSTRAINTS


def test_constraints_kept_when_given(profile_body):
    profile_body["constraints"] = " sin bancos "
    assert validate_profile(profile_body).value["constraints"] == "sin bancos"


def test_non_object_body_is_malformed():
    out = validate_profile(["monto", 1])
    assert out.ok is False
    assert out.kind == "MalformedBody"
    assert out.status == 400
