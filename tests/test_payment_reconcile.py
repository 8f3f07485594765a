from datetime import datetime

import pytest
from services.payments import PaymentStatus, reconcile_payment
from tests.utils import utc

CREATED = utc(2025, 1, 1, 10, 0)


@pytest.mark.parametrize("delta,status", [
    (0, PaymentStatus.PAID),
    (-1, PaymentStatus.UNDERPAID),
    (1, PaymentStatus.OVERPAID),
])
def test_classification_boundaries(delta, status):
    net = 1565200
    r = reconcile_payment(net, net + delta, CREATED, utc(2025, 1, 2, 10, 0))
    assert r.status is status
    assert r.payment_difference == delta


def test_payment_days_floor_whole_days():
    assert reconcile_payment(10, 10, CREATED, utc(2025, 1, 3, 9, 59)).payment_days == 1
    assert reconcile_payment(10, 10, CREATED, utc(2025, 1, 3, 10, 0)).payment_days == 2
    assert reconcile_payment(10, 10, CREATED, CREATED).payment_days == 0


def test_naive_created_at_is_read_as_utc():
    naive = datetime(2025, 1, 1, 10, 0)
    r = reconcile_payment(100, 50, naive, utc(2025, 1, 11, 10, 0))
    assert r.payment_days == 10
    assert r.status is PaymentStatus.UNDERPAID
    assert r.payment_difference == -50


def test_large_amounts_stay_exact():
    net = 10**18 + 1
    r = reconcile_payment(net, 10**18, CREATED, CREATED)
    assert r.payment_difference == -1
    assert r.status is PaymentStatus.UNDERPAID


def test_payment_days_truncate_toward_zero_when_clock_is_behind():
    assert reconcile_payment(10, 10, CREATED, utc(2025, 1, 1, 9, 59)).payment_days == 0
    assert reconcile_payment(10, 10, CREATED, utc(2024, 12, 31, 9, 0)).payment_days == -1
