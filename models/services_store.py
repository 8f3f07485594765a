# models/services_store.py (SQLAlchemy)
from __future__ import annotations
import logging
import math
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import func, or_, select

from models.base import session_scope
from models.receipt_counter_store import generate_receipt_no
from models.schema import FlightService
from services.billing import BillingInput, calculate_billing
from services.currency import currency_for_flight_type
from services.datetimex import as_utc, now_utc, to_iso_z
from services.payments import MonitoringStatus, PaymentStatus, reconcile_payment
from services.validation import (
    ServiceValidationError, validate_service_details, validate_service_input,
)

log = logging.getLogger(__name__)

SORT_FIELDS = {
    "seq_no": FlightService.seq_no,
    "ata_utc": FlightService.ata_utc,
    "net_total": FlightService.net_total,
    "duration_minutes": FlightService.duration_minutes,
    "created_at": FlightService.created_at,
    "receipt_no": FlightService.receipt_no,
}

EDITABLE_FIELDS = (
    "airline", "flight_type", "flight_number", "flight_number2",
    "registration", "aircraft_type", "dep_station", "arr_station",
    "arrival_date", "ata_utc", "atd_utc", "advance_extend",
    "service_start_utc", "service_end_utc",
    "use_app", "use_twr", "use_afis", "exchange_rate", "pic_name",
)


def _service_to_dict(r: FlightService) -> dict:
    return {
        "id": r.id,
        "seq_no": r.seq_no,
        "airline": r.airline,
        "flight_type": r.flight_type,
        "flight_number": r.flight_number,
        "flight_number2": r.flight_number2,
        "registration": r.registration,
        "aircraft_type": r.aircraft_type,
        "dep_station": r.dep_station,
        "arr_station": r.arr_station,
        "advance_extend": r.advance_extend,
        "pic_name": r.pic_name,
        "service_kind": r.service_kind,
        "arrival_date": as_utc(r.arrival_date),
        "ata_utc": as_utc(r.ata_utc),
        "atd_utc": as_utc(r.atd_utc),
        "service_start_utc": as_utc(r.service_start_utc),
        "service_end_utc": as_utc(r.service_end_utc),
        "use_app": r.use_app,
        "use_twr": r.use_twr,
        "use_afis": r.use_afis,
        "duration_minutes": r.duration_minutes,
        "billable_hours": r.billable_hours,
        "gross_app": int(r.gross_app),
        "gross_twr": int(r.gross_twr),
        "gross_afis": int(r.gross_afis),
        "gross_total": int(r.gross_total),
        "ppn": int(r.ppn),
        "net_total": int(r.net_total),
        "currency": r.currency,
        "exchange_rate": r.exchange_rate,
        "receipt_no": r.receipt_no,
        "receipt_date": as_utc(r.receipt_date),
        "status": r.status,
        "paid_at": as_utc(r.paid_at),
        "amount_paid": r.amount_paid,
        "payment_difference": r.payment_difference,
        "payment_days": r.payment_days,
        "monitoring_status": r.monitoring_status,
        "faktur_pajak_no": r.faktur_pajak_no,
        "faktur_pajak_date": as_utc(r.faktur_pajak_date),
        "pph23_withheld": r.pph23_withheld,
        "created_at": as_utc(r.created_at),
        "updated_at": as_utc(r.updated_at),
    }


def _apply_clean(rec: FlightService, clean: dict) -> None:
    for k in EDITABLE_FIELDS:
        if k == "exchange_rate":
            continue
        setattr(rec, k, clean[k])

    currency = currency_for_flight_type(clean["flight_type"], clean["exchange_rate"])
    rec.currency = currency.code
    rec.exchange_rate = currency.exchange_rate

    billing = calculate_billing(BillingInput(
        service_start_utc=clean["service_start_utc"],
        service_end_utc=clean["service_end_utc"],
        use_app=clean["use_app"],
        use_twr=clean["use_twr"],
        use_afis=clean["use_afis"],
    ))
    for k, v in billing.as_dict().items():
        setattr(rec, k, v)


def create_service(data: dict, now: Optional[datetime] = None) -> dict:
    """
    Validate, bill and store a flight service with a fresh receipt number.

    The receipt counter increment and the insert share one transaction, so
    a failed insert never burns a sequence number.
    """
    clean = validate_service_input(data)
    now = as_utc(now) or now_utc()

    with session_scope() as s:
        rec = FlightService(created_at=now, updated_at=now, receipt_date=now,
                            status=PaymentStatus.UNPAID.value,
                            monitoring_status=MonitoringStatus.PENDING.value)
        _apply_clean(rec, clean)
        rec.receipt_no = generate_receipt_no(
            rec.reference_utc, rec.flight_type, session=s)
        s.add(rec)
        s.flush()
        out = _service_to_dict(rec)

    log.info("created service %s receipt=%s net=%s %s",
             out["id"], out["receipt_no"], out["net_total"], out["currency"])
    return out


def get_service(service_id: str) -> Optional[dict]:
    with session_scope() as s:
        rec = s.execute(select(FlightService).where(
            FlightService.id == service_id)).scalar_one_or_none()
        return _service_to_dict(rec) if rec else None


def list_services(search: str | None = None, flight_type: str | None = None,
                  status: str | None = None, advance_extend: str | None = None,
                  date_from: datetime | None = None, date_to: datetime | None = None,
                  page: int = 1, page_size: int = 20,
                  sort_field: str = "created_at", sort_dir: str = "desc") -> Tuple[list[dict], dict]:
    page = max(1, int(page or 1))
    page_size = max(1, int(page_size or 20))

    conds = []
    if search:
        term = search.strip()
        conds.append(or_(*(
            column.icontains(term, autoescape=True)
            for column in (FlightService.airline, FlightService.flight_number,
                        FlightService.registration, FlightService.receipt_no)
        )))
    if flight_type:
        conds.append(FlightService.flight_type == flight_type)
    if status:
        conds.append(FlightService.status == status)
    if advance_extend:
        conds.append(FlightService.advance_extend == advance_extend)
    if date_from:
        conds.append(FlightService.arrival_date >= as_utc(date_from))
    if date_to:
        conds.append(FlightService.arrival_date <= as_utc(date_to))

    col = SORT_FIELDS.get(sort_field, FlightService.created_at)
    order = col.asc() if str(sort_dir).lower() == "asc" else col.desc()

    with session_scope() as s:
        total = s.execute(
            select(func.count()).select_from(FlightService).where(*conds)
        ).scalar_one()
        rows = s.execute(
            select(FlightService).where(*conds)
            .order_by(order, FlightService.seq_no.desc())
            .offset((page - 1) * page_size).limit(page_size)
        ).scalars().all()
        out = [_service_to_dict(r) for r in rows]

    return out, {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": math.ceil(total / page_size),
    }


def update_service(service_id: str, data: dict, now: Optional[datetime] = None) -> Optional[dict]:
    """Re-bill an existing service. The receipt number never changes."""
    now = as_utc(now) or now_utc()
    with session_scope() as s:
        rec = s.execute(
            select(FlightService).where(FlightService.id == service_id)
            .with_for_update()
        ).scalar_one_or_none()
        if rec is None:
            return None

        merged = {k: getattr(rec, k) for k in EDITABLE_FIELDS}
        merged.update({k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS})
        clean = validate_service_input(merged)
        if clean["flight_type"] != rec.flight_type:
            raise ServiceValidationError({
                "flight_type": "Flight type cannot change once a receipt number is assigned"})

        _apply_clean(rec, clean)
        if rec.amount_paid is not None:
            # keep status and difference in step with the new net total
            result = reconcile_payment(rec.net_total, rec.amount_paid,
                                       rec.created_at, rec.paid_at or now)
            rec.status = result.status.value
            rec.payment_difference = result.payment_difference
            rec.payment_days = result.payment_days
        rec.updated_at = now
        s.add(rec)
        s.flush()
        out = _service_to_dict(rec)

    log.info("updated service %s net=%s", service_id, out["net_total"])
    return out


def delete_service(service_id: str) -> bool:
    # the receipt counter is left alone; the number is simply not reused
    with session_scope() as s:
        rec = s.execute(select(FlightService).where(
            FlightService.id == service_id)).scalar_one_or_none()
        if rec is None:
            return False
        log.warning("deleting service %s receipt=%s", rec.id, rec.receipt_no)
        s.delete(rec)
        return True


def mark_service_paid(service_id: str, amount_paid: int | None = None,
                      actor: str | None = None, now: Optional[datetime] = None) -> Optional[dict]:
    """
    Record a payment against a service. Without an amount the net total is
    assumed to have been paid in full.
    """
    now = as_utc(now) or now_utc()
    with session_scope() as s:
        rec = s.execute(
            select(FlightService).where(FlightService.id == service_id)
            .with_for_update()
        ).scalar_one_or_none()
        if rec is None:
            return None

        paid = int(rec.net_total) if amount_paid is None else int(amount_paid)
        result = reconcile_payment(rec.net_total, paid, rec.created_at, now)

        rec.status = result.status.value
        rec.paid_at = now
        rec.amount_paid = paid
        rec.payment_difference = result.payment_difference
        rec.payment_days = result.payment_days
        rec.monitoring_status = MonitoringStatus.COMPLETED.value
        rec.updated_at = now
        s.add(rec)
        s.flush()
        out = _service_to_dict(rec)

    log.info("service %s marked %s by %s at %s (diff=%s)",
             service_id, out["status"], actor or "-", to_iso_z(now),
             out["payment_difference"])
    return out


def update_service_details(service_id: str, data: dict,
                           now: Optional[datetime] = None) -> Optional[dict]:
    """
    Set the tax invoice number/date, the PPh 23 flag or the monitoring
    status. Billing and the receipt number are not touched.
    """
    clean = validate_service_details(data)
    now = as_utc(now) or now_utc()
    with session_scope() as s:
        rec = s.execute(
            select(FlightService).where(FlightService.id == service_id)
            .with_for_update()
        ).scalar_one_or_none()
        if rec is None:
            return None
        for k, v in clean.items():
            setattr(rec, k, v)
        rec.updated_at = now
        s.add(rec)
        s.flush()
        out = _service_to_dict(rec)

    log.info("service %s details updated: %s", service_id, ", ".join(sorted(clean)) or "-")
    return out
