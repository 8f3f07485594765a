# models/receipt_counter_store.py
"""
Receipt number allocation.

A receipt number looks like ``WITT.21.2025.02.0007``: airport code, flight
type code, local year, local month and a per-bucket sequence. Each
(year, month, code) bucket owns one row in ``receipt_counters``; the row is
created on first use and its ``last_seq`` only ever goes up.

The increment is a single ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING``
statement where the dialect supports it, so two transactions hitting the
same bucket serialise on the row and never see the same value. Pass the
caller's session to make the increment part of the same transaction that
stores the flight service; if that transaction rolls back, so does the
increment.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.base import session_scope
from models.schema import ReceiptCounter
from services.datetimex import local_year_month, now_utc
from services.tariff import get_tariff, type_code_for

log = logging.getLogger(__name__)

RETRY_MESSAGE = "could not generate receipt number, please retry"


class ReceiptAllocationError(RuntimeError):
    def __init__(self, message: str = RETRY_MESSAGE, *, bucket: tuple | None = None):
        super().__init__(message)
        self.bucket = bucket


@dataclass(frozen=True)
class ParsedReceiptNo:
    airport_code: str
    type_code: str
    year: int
    month: int
    sequence: int


def format_receipt_no(year: int, month: int, code: str, seq: int) -> str:
    t = get_tariff()
    return ".".join([
        t.airport_code,
        code,
        str(year),
        f"{month:02d}",
        str(seq).zfill(t.seq_padding),
    ])


def parse_receipt_no(receipt_no: str) -> Optional[ParsedReceiptNo]:
    """Split a receipt number into its parts; None when it is malformed."""
    parts = (receipt_no or "").split(".")
    if len(parts) != 5:
        return None
    airport, code, y, m, seq = parts
    if not all(re.fullmatch(r"\d+", p) for p in (y, m, seq)):
        return None
    return ParsedReceiptNo(
        airport_code=airport,
        type_code=code,
        year=int(y),
        month=int(m),
        sequence=int(seq),
    )


def _upsert_increment(session: Session, year: int, month: int, code: str) -> int | None:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None

    table = ReceiptCounter.__table__
    now = now_utc()
    stmt = (
        insert(table)
        .values(year=year, month=month, code=code, last_seq=1, updated_at=now)
        .on_conflict_do_update(
            index_elements=[table.c.year, table.c.month, table.c.code],
            set_={"last_seq": table.c.last_seq + 1, "updated_at": now},
        )
        .returning(table.c.last_seq)
    )
    return session.execute(stmt).scalar_one()


def _locked_increment(session: Session, year: int, month: int, code: str) -> int:
    counter = session.execute(
        select(ReceiptCounter)
        .where(ReceiptCounter.year == year,
               ReceiptCounter.month == month,
               ReceiptCounter.code == code)
        .with_for_update()
    ).scalar_one_or_none()
    if counter is None:
        counter = ReceiptCounter(year=year, month=month, code=code, last_seq=1,
                                 updated_at=now_utc())
        session.add(counter)
    else:
        counter.last_seq += 1
        counter.updated_at = now_utc()
    session.flush()
    return counter.last_seq


def allocate_sequence(session: Session, year: int, month: int, code: str) -> int:
    """Atomically bump the bucket counter and return the new value."""
    seq = _upsert_increment(session, year, month, code)
    if seq is None:
        seq = _locked_increment(session, year, month, code)
    return seq


def _allocate(session: Session, reference_date: datetime, flight_type: str) -> str:
    year, month = local_year_month(reference_date)
    code = type_code_for(flight_type)
    try:
        seq = allocate_sequence(session, year, month, code)
    except SQLAlchemyError as e:
        log.exception("receipt allocation failed for bucket %s-%02d/%s",
                      year, month, code)
        raise ReceiptAllocationError(bucket=(year, month, code)) from e
    receipt_no = format_receipt_no(year, month, code, seq)
    log.info("allocated receipt %s", receipt_no)
    return receipt_no


def generate_receipt_no(reference_date: datetime, flight_type: str,
                        session: Session | None = None) -> str:
    """
    Allocate the next receipt number for the reference instant's local month.

    ``reference_date`` is the ATA when present, otherwise the ATD. With a
    ``session`` the counter update commits or rolls back with the caller's
    transaction; without one it is committed on its own.
    """
    if session is not None:
        return _allocate(session, reference_date, flight_type)
    try:
        with session_scope() as s:
            return _allocate(s, reference_date, flight_type)
    except ReceiptAllocationError:
        raise
    except SQLAlchemyError as e:
        # commit-time conflicts surface here, after _allocate returned
        log.exception("receipt allocation commit failed")
        raise ReceiptAllocationError() from e


def current_last_seq(year: int, month: int, code: str) -> int:
    with session_scope() as s:
        last = s.execute(
            select(ReceiptCounter.last_seq)
            .where(ReceiptCounter.year == year,
                   ReceiptCounter.month == month,
                   ReceiptCounter.code == code)
        ).scalar_one_or_none()
        return last or 0


def preview_next_receipt_no(reference_date: datetime, flight_type: str) -> str:
    """What the next allocation would return right now. Reserves nothing."""
    year, month = local_year_month(reference_date)
    code = type_code_for(flight_type)
    return format_receipt_no(year, month, code, current_last_seq(year, month, code) + 1)
