# services/validation.py
from __future__ import annotations
from datetime import datetime, date, timezone

from services.datetimex import as_utc, parse_iso_to_utc, resolve_rollover
from services.payments import MonitoringStatus

FLIGHT_TYPES = ("DOM", "INT")
ADVANCE_EXTEND = ("ADVANCE", "EXTEND")

REQUIRED_TEXT = {
    "airline": "Airline/Operator is required",
    "flight_number": "Flight number is required",
    "registration": "Registration is required",
    "aircraft_type": "Aircraft type is required",
    "dep_station": "Departure station is required",
    "arr_station": "Arrival station is required",
}
OPTIONAL_TEXT = ("flight_number2", "pic_name")
REQUIRED_DATETIMES = ("arrival_date", "service_start_utc", "service_end_utc")
OPTIONAL_DATETIMES = ("ata_utc", "atd_utc")
UNIT_FLAGS = ("use_app", "use_twr", "use_afis")
DETAIL_FIELDS = ("faktur_pajak_no", "faktur_pajak_date", "pph23_withheld", "monitoring_status")


class ServiceValidationError(ValueError):
    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def _coerce_dt(v):
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return as_utc(v)
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day, tzinfo=timezone.utc)
    if isinstance(v, str):
        return parse_iso_to_utc(v)
    return None


def _coerce_bool(v) -> bool | None:
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off", ""):
        return False
    return None


def _coerce_rate(v):
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        return "bad"
    if isinstance(v, int):
        return v if v > 0 else "bad"
    try:
        n = int(str(v).strip())
    except ValueError:
        return "bad"
    return n if n > 0 else "bad"


def validate_service_input(data: dict) -> dict:
    """
    Clean a flight-service payload before billing.

    Text fields are stripped, timestamps become aware UTC datetimes, the
    service end is moved to the next day when it falls before the start,
    and cross-field rules are checked (a charge unit, a reference time, an
    exchange rate for international flights).
    """
    data = data or {}
    errors: dict[str, str] = {}
    out: dict = {}

    for key, msg in REQUIRED_TEXT.items():
        v = str(data.get(key) or "").strip()
        if not v:
            errors[key] = msg
        out[key] = v
    for key in OPTIONAL_TEXT:
        out[key] = (str(data.get(key) or "").strip() or None)

    ft = str(data.get("flight_type") or "").strip().upper()
    if ft not in FLIGHT_TYPES:
        errors["flight_type"] = "Flight type must be DOM or INT"
    out["flight_type"] = ft
    ae = str(data.get("advance_extend") or "").strip().upper()
    if ae not in ADVANCE_EXTEND:
        errors["advance_extend"] = "Must be ADVANCE or EXTEND"
    out["advance_extend"] = ae

    for key in REQUIRED_DATETIMES:
        v = _coerce_dt(data.get(key))
        if v is None:
            errors[key] = "A valid date/time is required"
        out[key] = v
    for key in OPTIONAL_DATETIMES:
        raw = data.get(key)
        v = _coerce_dt(raw)
        if v is None and raw not in (None, ""):
            errors[key] = "Invalid date/time"
        out[key] = v

    for key in UNIT_FLAGS:
        v = _coerce_bool(data.get(key))
        if v is None:
            errors[key] = "Must be a boolean"
        out[key] = bool(v)

    rate = _coerce_rate(data.get("exchange_rate"))
    if rate == "bad":
        errors["exchange_rate"] = "Exchange rate must be a positive integer"
        rate = None
    out["exchange_rate"] = rate

    if not (out.get("ata_utc") or out.get("atd_utc")):
        errors.setdefault(
            "ata_utc", "Either ATA (Arrival) or ATD (Departure) time must be provided")
    if not any(out.get(k) for k in UNIT_FLAGS):
        errors.setdefault(
            "use_app", "At least one unit (APP, TWR, or AFIS) must be selected")

    start, end = out.get("service_start_utc"), out.get("service_end_utc")
    if start is not None and end is not None:
        end = resolve_rollover(start, end)
        if end <= start:
            errors.setdefault(
                "service_end_utc", "Service end time must be after start time")
        out["service_end_utc"] = end

    if out.get("flight_type") == "INT":
        if out.get("exchange_rate") is None:
            errors.setdefault(
                "exchange_rate", "Exchange rate is required for international flights")
    else:
        out["exchange_rate"] = None

    if errors:
        raise ServiceValidationError(errors)
    return out


def validate_service_details(data: dict) -> dict:
    """Clean the back-office fields of a service. Only keys present in ``data`` are returned."""
    data = data or {}
    errors: dict[str, str] = {}
    out: dict = {}

    if "faktur_pajak_no" in data:
        out["faktur_pajak_no"] = str(data["faktur_pajak_no"] or "").strip() or None
    if "faktur_pajak_date" in data:
        raw = data["faktur_pajak_date"]
        v = _coerce_dt(raw)
        if v is None and raw not in (None, ""):
            errors["faktur_pajak_date"] = "Invalid date/time"
        out["faktur_pajak_date"] = v
    if "pph23_withheld" in data:
        v = _coerce_bool(data["pph23_withheld"])
        if v is None:
            errors["pph23_withheld"] = "Must be a boolean"
        out["pph23_withheld"] = bool(v)
    if "monitoring_status" in data:
        ms = str(data["monitoring_status"] or "").strip().upper()
        if ms not in MonitoringStatus.__members__:
            errors["monitoring_status"] = "Must be PENDING, BILLED, DEPOSIT or COMPLETED"
        out["monitoring_status"] = ms

    if errors:
        raise ServiceValidationError(errors)
    return out
