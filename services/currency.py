# services/currency.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union


class CurrencyError(ValueError):
    pass


@dataclass(frozen=True)
class IDR:
    code = "IDR"

    @property
    def exchange_rate(self) -> None:
        return None


@dataclass(frozen=True)
class USD:
    exchange_rate: int          # IDR per 1 USD
    code = "USD"

    def __post_init__(self):
        r = self.exchange_rate
        if isinstance(r, bool) or not isinstance(r, int) or r <= 0:
            raise CurrencyError(
                f"USD billing needs a positive integer exchange rate, got {r!r}")


BillingCurrency = Union[IDR, USD]


def currency_for_flight_type(flight_type: str, exchange_rate: Optional[int] = None) -> BillingCurrency:
    """Domestic flights bill in IDR, international in USD."""
    if flight_type == "DOM":
        return IDR()
    if flight_type == "INT":
        if exchange_rate is None:
            raise CurrencyError("International flights require an exchange rate")
        return USD(exchange_rate)
    raise CurrencyError(f"Unknown flight type: {flight_type!r}")


def currency_from_record(code: str, exchange_rate: Optional[int]) -> BillingCurrency:
    if code == "IDR":
        return IDR()
    if code == "USD":
        return USD(int(exchange_rate) if exchange_rate is not None else None)
    raise CurrencyError(f"Unknown currency: {code!r}")
