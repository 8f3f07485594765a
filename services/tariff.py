# services/tariff.py
from __future__ import annotations
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache

UNITS = ("APP", "TWR", "AFIS")

DEFAULT_RATES = {"APP": 822000, "TWR": 575500, "AFIS": 246500}
DEFAULT_TYPE_CODES = {"DOM": "21", "INT": "22"}


class TariffConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Tariff:
    rates: dict                 # unit -> per-hour rate, smallest currency unit
    ppn_rate: Decimal           # e.g. Decimal("0.12")
    airport_code: str
    type_codes: dict            # flight type -> 2-char code
    seq_padding: int

    @property
    def ppn_ratio(self) -> tuple[int, int]:
        return self.ppn_rate.as_integer_ratio()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        v = int(raw.strip())
    except ValueError:
        raise TariffConfigError(f"{name} must be an integer, got {raw!r}")
    if v <= 0:
        raise TariffConfigError(f"{name} must be positive, got {v}")
    return v


def _ppn_env() -> Decimal:
    raw = os.getenv("BILLING_PPN_RATE", "0.12")
    try:
        rate = Decimal(raw.strip())
    except InvalidOperation:
        raise TariffConfigError(f"BILLING_PPN_RATE is not a number: {raw!r}")
    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise TariffConfigError(f"BILLING_PPN_RATE out of range: {raw!r}")
    return rate


@lru_cache(maxsize=1)
def get_tariff() -> Tariff:
    """Load billing constants from the environment once per process."""
    rates = {u: _int_env(f"BILLING_RATE_{u}", DEFAULT_RATES[u]) for u in UNITS}
    codes = {
        ft: (os.getenv(f"RECEIPT_CODE_{ft}") or code).strip()
        for ft, code in DEFAULT_TYPE_CODES.items()
    }
    for ft, code in codes.items():
        if len(code) != 2 or "." in code:
            raise TariffConfigError(f"RECEIPT_CODE_{ft} must be 2 characters")
    airport = (os.getenv("AIRPORT_CODE") or "WITT").strip().upper()
    if not airport or "." in airport:
        raise TariffConfigError("AIRPORT_CODE must be non-empty and dot-free")
    return Tariff(
        rates=rates,
        ppn_rate=_ppn_env(),
        airport_code=airport,
        type_codes=codes,
        seq_padding=_int_env("RECEIPT_SEQ_PADDING", 4),
    )


def get_unit_rate(unit: str) -> int:
    return get_tariff().rates[unit]


def get_active_units(use_app: bool, use_twr: bool, use_afis: bool) -> list[tuple[str, int]]:
    rates = get_tariff().rates
    flags = {"APP": use_app, "TWR": use_twr, "AFIS": use_afis}
    return [(u, rates[u]) for u in UNITS if flags[u]]


def type_code_for(flight_type: str) -> str:
    try:
        return get_tariff().type_codes[flight_type]
    except KeyError:
        raise ValueError(f"Unknown flight type: {flight_type!r}")
