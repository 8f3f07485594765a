import pytest
from services.validation import (
    ServiceValidationError, validate_service_details, validate_service_input,
)
from tests.utils import service_payload, utc


def test_clean_payload_passes_and_is_normalised():
    out = validate_service_input(service_payload(
        airline="  Lion Air ", flight_type="dom", use_afis="1",
        service_start_utc="2025-12-24T19:00:00Z",
        service_end_utc="2025-12-24T19:05:00Z",
    ))
    assert out["airline"] == "Lion Air"
    assert out["flight_type"] == "DOM"
    assert out["use_afis"] is True
    assert out["service_start_utc"] == utc(2025, 12, 24, 19, 0)
    assert out["exchange_rate"] is None


def test_end_before_start_rolls_to_next_day():
    out = validate_service_input(service_payload(
        service_start_utc=utc(2025, 12, 24, 23, 30),
        service_end_utc=utc(2025, 12, 24, 0, 45),
    ))
    assert out["service_end_utc"] == utc(2025, 12, 25, 0, 45)


def test_equal_start_and_end_is_rejected():
    with pytest.raises(ServiceValidationError) as ei:
        validate_service_input(service_payload(
            service_start_utc=utc(2025, 12, 24, 19), service_end_utc=utc(2025, 12, 24, 19)))
    assert "service_end_utc" in ei.value.errors


def test_requires_a_charge_unit():
    with pytest.raises(ServiceValidationError) as ei:
        validate_service_input(service_payload(use_app=False, use_twr=False, use_afis=False))
    assert "use_app" in ei.value.errors


def test_requires_ata_or_atd():
    with pytest.raises(ServiceValidationError) as ei:
        validate_service_input(service_payload(ata_utc=None, atd_utc=None))
    assert "ata_utc" in ei.value.errors

    out = validate_service_input(service_payload(ata_utc=None, atd_utc=utc(2025, 12, 24, 20)))
    assert out["atd_utc"] == utc(2025, 12, 24, 20)


def test_international_needs_exchange_rate():
    with pytest.raises(ServiceValidationError) as ei:
        validate_service_input(service_payload(flight_type="INT"))
    assert "exchange_rate" in ei.value.errors

    out = validate_service_input(service_payload(flight_type="INT", exchange_rate="16250"))
    assert out["exchange_rate"] == 16250


@pytest.mark.parametrize("rate", [0, -1, "abc", True])
def test_exchange_rate_must_be_positive_integer(rate):
    with pytest.raises(ServiceValidationError) as ei:
        validate_service_input(service_payload(flight_type="INT", exchange_rate=rate))
    assert "exchange_rate" in ei.value.errors


def test_collects_all_field_errors():
    with pytest.raises(ServiceValidationError) as ei:
        validate_service_input({"flight_type": "CARGO", "use_app": "maybe"})
    errs = ei.value.errors
    assert {"airline", "flight_type", "advance_extend", "arrival_date",
            "use_app", "ata_utc"} <= set(errs)
    assert "airline" in str(ei.value)


def test_details_only_returns_supplied_keys():
    assert validate_service_details({}) == {}
    out = validate_service_details({"pph23_withheld": "0", "faktur_pajak_no": "  "})
    assert out == {"pph23_withheld": False, "faktur_pajak_no": None}


def test_details_clear_tax_invoice_date_and_normalise_status():
    out = validate_service_details({"faktur_pajak_date": "", "monitoring_status": " completed "})
    assert out == {"faktur_pajak_date": None, "monitoring_status": "COMPLETED"}
