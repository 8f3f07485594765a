# models/schema.py
from datetime import datetime
from uuid import uuid4
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, DateTime, Index, Integer,
    PrimaryKeyConstraint, String,
)
from models.base import Base


def _new_id() -> str:
    return uuid4().hex


# --- FLIGHT SERVICES (one billed transaction per row)

class FlightService(Base):
    __tablename__ = "flight_services"
    # display-only running number, unrelated to the receipt sequence
    seq_no: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, default=_new_id)

    # flight
    airline: Mapped[str] = mapped_column(String, nullable=False)
    flight_type: Mapped[str] = mapped_column(
        String(3), nullable=False)  # 'DOM' | 'INT'
    flight_number: Mapped[str] = mapped_column(String, nullable=False)
    flight_number2: Mapped[str | None] = mapped_column(String)
    registration: Mapped[str] = mapped_column(String, nullable=False)
    aircraft_type: Mapped[str] = mapped_column(String, nullable=False)
    dep_station: Mapped[str] = mapped_column(String, nullable=False)
    arr_station: Mapped[str] = mapped_column(String, nullable=False)
    advance_extend: Mapped[str] = mapped_column(
        String, nullable=False)  # 'ADVANCE' | 'EXTEND'
    pic_name: Mapped[str | None] = mapped_column(String)

    # times (UTC)
    arrival_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False)
    ata_utc: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    atd_utc: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    service_start_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False)
    service_end_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False)

    # charge units
    use_app: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    use_twr: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    use_afis: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # billing snapshot; money in the currency's smallest unit, never float
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    billable_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    gross_app: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    gross_twr: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    gross_afis: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    gross_total: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ppn: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    net_total: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    exchange_rate: Mapped[int | None] = mapped_column(
        BigInteger)  # IDR per 1 USD

    # receipt
    receipt_no: Mapped[str] = mapped_column(
        String, unique=True, nullable=False)  # e.g. WITT.21.2025.12.0001
    receipt_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False)

    # payment
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="UNPAID")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    amount_paid: Mapped[int | None] = mapped_column(BigInteger)
    payment_difference: Mapped[int | None] = mapped_column(BigInteger)
    payment_days: Mapped[int | None] = mapped_column(Integer)

    # back-office follow-up
    monitoring_status: Mapped[str] = mapped_column(
        String, nullable=False, default="PENDING")
    faktur_pajak_no: Mapped[str | None] = mapped_column(String)  # tax invoice
    faktur_pajak_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True))
    pph23_withheld: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("flight_type in ('DOM','INT')",
                        name="ck_services_flight_type"),
        CheckConstraint("advance_extend in ('ADVANCE','EXTEND')",
                        name="ck_services_advance_extend"),
        CheckConstraint("status in ('UNPAID','PAID','UNDERPAID','OVERPAID')",
                        name="ck_services_status"),
        CheckConstraint(
            "monitoring_status in ('PENDING','BILLED','DEPOSIT','COMPLETED')",
            name="ck_services_monitoring_status"),
        CheckConstraint("currency in ('IDR','USD')",
                        name="ck_services_currency"),
        CheckConstraint("(currency = 'USD') = (exchange_rate IS NOT NULL)",
                        name="ck_services_usd_has_rate"),
        CheckConstraint("exchange_rate IS NULL OR exchange_rate > 0",
                        name="ck_services_rate_gt_0"),
        CheckConstraint("use_app OR use_twr OR use_afis",
                        name="ck_services_any_unit"),
        CheckConstraint("ata_utc IS NOT NULL OR atd_utc IS NOT NULL",
                        name="ck_services_reference_time"),
        CheckConstraint("service_end_utc >= service_start_utc",
                        name="ck_services_window"),
        CheckConstraint("gross_total = gross_app + gross_twr + gross_afis",
                        name="ck_services_gross_sum"),
        CheckConstraint("net_total = gross_total + ppn",
                        name="ck_services_net_sum"),
        Index("idx_services_created_at", "created_at"),
        Index("idx_services_status", "status"),
    )

    @property
    def reference_utc(self) -> datetime | None:
        """Receipt dating instant: ATA for arrivals, otherwise ATD."""
        return self.ata_utc or self.atd_utc

    @property
    def service_kind(self) -> str:
        return "ARRIVAL" if self.ata_utc is not None else "DEPARTURE"


# --- RECEIPT COUNTERS (one row per local month per flight-type code)

class ReceiptCounter(Base):
    __tablename__ = "receipt_counters"
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String(2), nullable=False)
    last_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True))

    __table_args__ = (
        PrimaryKeyConstraint("year", "month", "code",
                             name="pk_receipt_counters"),
        CheckConstraint("month BETWEEN 1 AND 12",
                        name="ck_receipt_counters_month"),
        CheckConstraint("last_seq >= 0", name="ck_receipt_counters_seq_ge_0"),
    )
