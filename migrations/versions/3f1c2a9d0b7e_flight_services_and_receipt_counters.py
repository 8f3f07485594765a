"""flight services and receipt counters

Revision ID: 3f1c2a9d0b7e
Revises:
Create Date: 2025-12-24 09:30:12.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d0b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "receipt_counters",
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=2), nullable=False),
        sa.Column("last_seq", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.PrimaryKeyConstraint("year", "month", "code",
                                name="pk_receipt_counters"),
        sa.CheckConstraint("month BETWEEN 1 AND 12",
                           name="ck_receipt_counters_month"),
        sa.CheckConstraint("last_seq >= 0",
                           name="ck_receipt_counters_seq_ge_0"),
    )

    op.create_table(
        "flight_services",
        sa.Column("seq_no", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(length=32), nullable=False, unique=True),
        sa.Column("airline", sa.String(), nullable=False),
        sa.Column("flight_type", sa.String(length=3), nullable=False),
        sa.Column("flight_number", sa.String(), nullable=False),
        sa.Column("flight_number2", sa.String()),
        sa.Column("registration", sa.String(), nullable=False),
        sa.Column("aircraft_type", sa.String(), nullable=False),
        sa.Column("dep_station", sa.String(), nullable=False),
        sa.Column("arr_station", sa.String(), nullable=False),
        sa.Column("advance_extend", sa.String(), nullable=False),
        sa.Column("pic_name", sa.String()),
        sa.Column("arrival_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ata_utc", sa.DateTime(timezone=True)),
        sa.Column("atd_utc", sa.DateTime(timezone=True)),
        sa.Column("service_start_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("service_end_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("use_app", sa.Boolean(), nullable=False),
        sa.Column("use_twr", sa.Boolean(), nullable=False),
        sa.Column("use_afis", sa.Boolean(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("billable_hours", sa.Integer(), nullable=False),
        sa.Column("gross_app", sa.BigInteger(), nullable=False),
        sa.Column("gross_twr", sa.BigInteger(), nullable=False),
        sa.Column("gross_afis", sa.BigInteger(), nullable=False),
        sa.Column("gross_total", sa.BigInteger(), nullable=False),
        sa.Column("ppn", sa.BigInteger(), nullable=False),
        sa.Column("net_total", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("exchange_rate", sa.BigInteger()),
        sa.Column("receipt_no", sa.String(), nullable=False, unique=True),
        sa.Column("receipt_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.Column("amount_paid", sa.BigInteger()),
        sa.Column("payment_difference", sa.BigInteger()),
        sa.Column("payment_days", sa.Integer()),
        sa.Column("monitoring_status", sa.String(), nullable=False,
                  server_default="PENDING"),
        sa.Column("faktur_pajak_no", sa.String()),
        sa.Column("faktur_pajak_date", sa.DateTime(timezone=True)),
        sa.Column("pph23_withheld", sa.Boolean(), nullable=False,
                  server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("flight_type in ('DOM','INT')",
                           name="ck_services_flight_type"),
        sa.CheckConstraint("advance_extend in ('ADVANCE','EXTEND')",
                           name="ck_services_advance_extend"),
        sa.CheckConstraint("status in ('UNPAID','PAID','UNDERPAID','OVERPAID')",
                           name="ck_services_status"),
        sa.CheckConstraint(
            "monitoring_status in ('PENDING','BILLED','DEPOSIT','COMPLETED')",
            name="ck_services_monitoring_status"),
        sa.CheckConstraint("currency in ('IDR','USD')",
                           name="ck_services_currency"),
        sa.CheckConstraint("(currency = 'USD') = (exchange_rate IS NOT NULL)",
                           name="ck_services_usd_has_rate"),
        sa.CheckConstraint("exchange_rate IS NULL OR exchange_rate > 0",
                           name="ck_services_rate_gt_0"),
        sa.CheckConstraint("use_app OR use_twr OR use_afis",
                           name="ck_services_any_unit"),
        sa.CheckConstraint("ata_utc IS NOT NULL OR atd_utc IS NOT NULL",
                           name="ck_services_reference_time"),
        sa.CheckConstraint("service_end_utc >= service_start_utc",
                           name="ck_services_window"),
        sa.CheckConstraint("gross_total = gross_app + gross_twr + gross_afis",
                           name="ck_services_gross_sum"),
        sa.CheckConstraint("net_total = gross_total + ppn",
                           name="ck_services_net_sum"),
    )
    op.create_index("idx_services_created_at", "flight_services", ["created_at"])
    op.create_index("idx_services_status", "flight_services", ["status"])


def downgrade():
    op.drop_index("idx_services_status", table_name="flight_services")
    op.drop_index("idx_services_created_at", table_name="flight_services")
    op.drop_table("flight_services")
    op.drop_table("receipt_counters")
