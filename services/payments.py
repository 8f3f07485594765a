# services/payments.py
from __future__ import annotations
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta

from services.datetimex import as_utc

DAY = timedelta(days=1)


class PaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    UNDERPAID = "UNDERPAID"
    OVERPAID = "OVERPAID"


class MonitoringStatus(str, enum.Enum):
    PENDING = "PENDING"
    BILLED = "BILLED"
    DEPOSIT = "DEPOSIT"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class PaymentReconciliation:
    status: PaymentStatus
    payment_difference: int     # amount_paid - net_total
    payment_days: int


def classify_difference(difference: int) -> PaymentStatus:
    if difference == 0:
        return PaymentStatus.PAID
    if difference < 0:
        return PaymentStatus.UNDERPAID
    return PaymentStatus.OVERPAID


def reconcile_payment(net_total: int, amount_paid: int,
                      created_at: datetime, now: datetime) -> PaymentReconciliation:
    """
    Compare what was paid against the invoiced net total.
    Does not validate that amount_paid is non-negative.
    """
    difference = int(amount_paid) - int(net_total)
    elapsed = as_utc(now) - as_utc(created_at)
    # whole days, truncated toward zero
    days = elapsed // DAY if elapsed >= timedelta(0) else -(-elapsed // DAY)
    return PaymentReconciliation(
        status=classify_difference(difference),
        payment_difference=difference,
        payment_days=days,
    )
