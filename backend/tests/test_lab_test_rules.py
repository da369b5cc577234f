from datetime import date
from decimal import Decimal

from novahealth.schemas import LabTestPayload
from novahealth.services.lab_tests import add_months, build_results, validate_lab_test_payload
from novahealth.services.normalization import compute_deviation, resolve_abnormal


def _payload(**overrides):
    body = {
        "type": "hormone",
        "name": "Thyroid",
        "provider": "Quest",
        "test_date": "2026-03-31",
        "results": [{"name": "TSH", "value": 5.1, "unit": "mIU/L", "reference_range_low": 0.4, "reference_range_high": 4.0}],
    }
    body.update(overrides)
    return LabTestPayload.model_validate(body)


def test_add_months_clamps_day():
    assert add_months(date(2026, 1, 15), 6) == date(2026, 7, 15)
    assert add_months(date(2025, 8, 31), 6) == date(2026, 2, 28)
    assert add_months(date(2027, 8, 31), 6) == date(2028, 2, 29)
    assert add_months(date(2026, 9, 30), 6) == date(2027, 3, 30)


def test_valid_payload():
    result = validate_lab_test_payload(_payload())
    assert result.ok
    assert result.errors == []


def test_next_test_date_before_test_date():
    result = validate_lab_test_payload(_payload(next_test_date="2026-01-01"))
    assert not result.ok
    assert result.errors == [
        {"field": "next_test_date", "message": "Next test date must not be before the test date"}
    ]


def test_blank_unit_and_name():
    result = validate_lab_test_payload(_payload(results=[{"name": " ", "value": 1, "unit": ""}]))
    assert {e["field"] for e in result.errors} == {"results[0].name", "results[0].unit"}


def test_build_results_computes_missing_flags():
    payload = _payload(
        results=[
            {"name": "TSH", "value": 5.1, "unit": "mIU/L", "reference_range_low": 0.4, "reference_range_high": 4.0},
            {"name": "Free T4", "value": 1.1, "unit": "ng/dL", "reference_range_low": 0.8, "reference_range_high": 1.8},
            {"name": "T3", "value": 9, "unit": "pg/mL", "is_abnormal": True},
        ]
    )
    rows = build_results(payload)

    assert [r.position for r in rows] == [0, 1, 2]
    assert [r.is_abnormal for r in rows] == [True, False, True]
    assert rows[0].value == Decimal("5.1")
    assert rows[2].reference_range_low is None


def test_compute_deviation_and_resolve():
    assert compute_deviation(Decimal("3"), Decimal("4"), Decimal("6")) == "low"
    assert compute_deviation(Decimal("7"), None, Decimal("6")) == "high"
    assert compute_deviation(Decimal("7"), Decimal("4"), None) == "normal"
    assert compute_deviation(Decimal("5"), None, None) == "normal"
    assert resolve_abnormal(False, Decimal("1"), Decimal("4"), None) is False
    assert resolve_abnormal(None, Decimal("1"), Decimal("4"), None) is True
