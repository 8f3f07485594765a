from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest
from services import billing as b
from services.billing import BillingInput, calculate_billing
from services.datetimex import combine_date_time
from tests.utils import utc


def _input(minutes=5, app=True, twr=True, afis=False):
    start = utc(2025, 12, 24, 19, 0)
    return BillingInput(start, start + timedelta(minutes=minutes), app, twr, afis)


def test_end_to_end_app_and_twr_five_minutes():
    start = combine_date_time("2025-12-24", "19:00:00")
    end = combine_date_time("2025-12-24", "19:05:00")
    r = calculate_billing(BillingInput(start, end, True, True, False))

    assert r.duration_minutes == 5
    assert r.billable_hours == 1
    assert r.gross_app == 822000
    assert r.gross_twr == 575500
    assert r.gross_afis == 0
    assert r.gross_total == 1397500
    assert r.ppn == 167700
    assert r.net_total == 1565200


@pytest.mark.parametrize("minutes,hours", [
    (0, 0), (-5, 0), (1, 1), (59, 1), (60, 1), (61, 2), (120, 2), (121, 3),
])
def test_billable_hours_round_up(minutes, hours):
    assert b.calculate_billable_hours(minutes) == hours


def test_duration_floors_seconds_and_never_negative():
    start = utc(2025, 1, 1, 10, 0, 0)
    assert b.calculate_duration_minutes(start, start + timedelta(seconds=59)) == 0
    assert b.calculate_duration_minutes(start, start + timedelta(minutes=2, seconds=59)) == 2
    # rollover is the caller's job; a reversed window is simply zero
    assert b.calculate_duration_minutes(start, start - timedelta(hours=1)) == 0


def test_ppn_uses_exact_integer_arithmetic():
    assert b.calculate_ppn(822000) == 98640
    assert b.calculate_ppn(0) == 0
    assert b.calculate_ppn(575500) == 69060
    assert b.calculate_ppn(1) == 0
    assert b.calculate_ppn(9) == 1
    big = 10**20 + 7
    assert b.calculate_ppn(big) == big * 3 // 25
    assert isinstance(b.calculate_ppn(big), int)


def test_unit_gross_zero_when_unused():
    assert b.calculate_unit_gross(3, "AFIS", False) == 0
    assert b.calculate_unit_gross(3, "AFIS", True) == 3 * 246500


def test_all_units_off_is_all_zero():
    r = calculate_billing(_input(minutes=90, app=False, twr=False, afis=False))
    assert r.billable_hours == 2
    assert (r.gross_total, r.ppn, r.net_total) == (0, 0, 0)


@pytest.mark.parametrize("flags", [
    (True, False, False), (False, True, False), (False, False, True),
    (True, True, True), (True, False, True),
])
def test_gross_total_is_sum_of_units(flags):
    r = calculate_billing(_input(61, *flags))
    assert r.gross_total == r.gross_app + r.gross_twr + r.gross_afis
    assert r.net_total == r.gross_total + r.ppn


def test_billing_is_deterministic_and_immutable():
    inp = _input(minutes=125, afis=True)
    first = calculate_billing(inp)
    assert calculate_billing(inp) == first
    with pytest.raises(FrozenInstanceError):
        first.net_total = 1


def test_custom_tariff_is_respected(monkeypatch):
    monkeypatch.setenv("BILLING_RATE_APP", "1000")
    monkeypatch.setenv("BILLING_PPN_RATE", "0.11")
    b.get_tariff.cache_clear()
    r = calculate_billing(_input(minutes=61, app=True, twr=False))
    assert r.gross_app == 2000
    assert r.ppn == 220
    assert r.net_total == 2220
