"""Initial booking schema: room categories, rooms, reservations

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ROOM_STATUSES = ("available", "occupied", "maintenance", "cleaning")
RESERVATION_STATUSES = ("confirmed", "checked-in", "checked-out", "cancelled", "no-show")
PAYMENT_STATUSES = ("pending", "paid", "partially_paid", "refund_due")


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"

    op.create_table(
        "room_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("base_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("max_occupancy", sa.Integer(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("name", name="uq_room_categories_name"),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_number", sa.String(length=10), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("room_categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("price_adjustment", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("max_occupancy", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*ROOM_STATUSES, name="room_status"),
            nullable=False,
            server_default="available",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.UniqueConstraint("room_number", name="uq_rooms_room_number"),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "room_id",
            sa.Integer(),
            sa.ForeignKey("rooms.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("guest_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("number_of_guests", sa.SmallInteger(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*RESERVATION_STATUSES, name="reservation_status"),
            nullable=False,
            server_default="confirmed",
        ),
        sa.Column(
            "payment_status",
            sa.Enum(*PAYMENT_STATUSES, name="payment_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("actual_check_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_check_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint(
            "check_out_date > check_in_date", name="ck_reservations_valid_date_range"
        ),
        sa.CheckConstraint("number_of_guests > 0", name="ck_reservations_positive_guests"),
        sa.CheckConstraint("total_amount >= 0", name="ck_reservations_non_negative_total"),
    )
    op.create_index("ix_reservations_room_id", "reservations", ["room_id"])
    op.create_index("ix_reservations_guest_id", "reservations", ["guest_id"])
    op.create_index(
        "ix_reservations_room_dates",
        "reservations",
        ["room_id", "check_in_date", "check_out_date"],
    )

    if is_postgres:
        # Store-level backstop: no two active stays on one room may overlap
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE reservations
            ADD CONSTRAINT ex_reservations_no_overlap
            EXCLUDE USING gist (
                room_id WITH =,
                daterange(check_in_date, check_out_date, '[)') WITH &&
            )
            WHERE (status IN ('confirmed', 'checked-in'))
            """
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()

    op.drop_index("ix_reservations_room_dates", table_name="reservations")
    op.drop_index("ix_reservations_guest_id", table_name="reservations")
    op.drop_index("ix_reservations_room_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("rooms")
    op.drop_table("room_categories")

    if bind.dialect.name == "postgresql":
        for enum_name in ("payment_status", "reservation_status", "room_status"):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
