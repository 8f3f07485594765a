# services/billing.py
"""
Duration and money calculation for a single flight service.

Everything here is pure integer arithmetic: rates and hour counts are whole
numbers, and VAT is applied as an exact ratio, so no amount ever passes
through a float.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta

from services.tariff import Tariff, get_tariff


@dataclass(frozen=True)
class BillingInput:
    service_start_utc: datetime
    service_end_utc: datetime
    use_app: bool
    use_twr: bool
    use_afis: bool


@dataclass(frozen=True)
class BillingResult:
    duration_minutes: int
    billable_hours: int
    gross_app: int
    gross_twr: int
    gross_afis: int
    gross_total: int
    ppn: int
    net_total: int

    def as_dict(self) -> dict:
        return {
            "duration_minutes": self.duration_minutes,
            "billable_hours": self.billable_hours,
            "gross_app": self.gross_app,
            "gross_twr": self.gross_twr,
            "gross_afis": self.gross_afis,
            "gross_total": self.gross_total,
            "ppn": self.ppn,
            "net_total": self.net_total,
        }


def calculate_duration_minutes(start: datetime, end: datetime) -> int:
    # rollover must already be resolved by the caller
    return max(0, (end - start) // timedelta(minutes=1))


def calculate_billable_hours(minutes: int) -> int:
    """Any started hour is billed as a full hour."""
    if minutes <= 0:
        return 0
    return -(-minutes // 60)


def calculate_unit_gross(billable_hours: int, unit: str, is_used: bool,
                         tariff: Tariff | None = None) -> int:
    if not is_used:
        return 0
    rate = (tariff or get_tariff()).rates[unit]
    return int(billable_hours) * int(rate)


def calculate_ppn(gross_total: int, tariff: Tariff | None = None) -> int:
    num, den = (tariff or get_tariff()).ppn_ratio
    return int(gross_total) * num // den


def calculate_billing(inp: BillingInput, tariff: Tariff | None = None) -> BillingResult:
    tariff = tariff or get_tariff()
    minutes = calculate_duration_minutes(inp.service_start_utc, inp.service_end_utc)
    hours = calculate_billable_hours(minutes)

    gross_app = calculate_unit_gross(hours, "APP", inp.use_app, tariff)
    gross_twr = calculate_unit_gross(hours, "TWR", inp.use_twr, tariff)
    gross_afis = calculate_unit_gross(hours, "AFIS", inp.use_afis, tariff)

    gross_total = gross_app + gross_twr + gross_afis
    ppn = calculate_ppn(gross_total, tariff)

    return BillingResult(
        duration_minutes=minutes,
        billable_hours=hours,
        gross_app=gross_app,
        gross_twr=gross_twr,
        gross_afis=gross_afis,
        gross_total=gross_total,
        ppn=ppn,
        net_total=gross_total + ppn,
    )
