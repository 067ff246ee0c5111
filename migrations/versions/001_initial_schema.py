"""Initial schema: users, machines, alerts, maintenance records.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("contact_number", sa.String(50), nullable=True),
        sa.Column("avatar", sa.String(1024), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "machines",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("model", sa.String(255), nullable=False),
        sa.Column("serial_number", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("manufacturer", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="operational"),
        sa.Column("installation_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("last_maintenance", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_scheduled_maintenance", sa.DateTime(timezone=True), nullable=True),
        sa.Column("maintenance_interval", sa.Integer(), nullable=False, server_default="90"),
        sa.Column("performance", sa.Float(), nullable=False, server_default="100"),
        sa.Column("availability", sa.Float(), nullable=False, server_default="100"),
        sa.Column("quality", sa.Float(), nullable=False, server_default="100"),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("serial_number", name="uq_machines_serial_number"),
    )
    op.create_index("ix_machines_name", "machines", ["name"], unique=False)
    op.create_index("ix_machines_location", "machines", ["location"], unique=False)
    op.create_index("ix_machines_status", "machines", ["status"], unique=False)
    op.create_index("ix_machines_created_at", "machines", ["created_at"], unique=False)

    op.create_table(
        "alerts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("machine_id", sa.Uuid(), sa.ForeignKey("machines.id", ondelete="SET NULL"), nullable=True),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("assigned_to_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("resolved_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("photos", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alerts_machine_id", "alerts", ["machine_id"], unique=False)
    op.create_index("ix_alerts_status", "alerts", ["status"], unique=False)
    op.create_index("ix_alerts_created_by_id", "alerts", ["created_by_id"], unique=False)
    op.create_index("ix_alerts_assigned_to_id", "alerts", ["assigned_to_id"], unique=False)
    op.create_index("ix_alerts_created_at", "alerts", ["created_at"], unique=False)
    op.create_index(
        "ix_alerts_machine_priority_status", "alerts", ["machine_id", "priority", "status"], unique=False
    )

    op.create_table(
        "maintenance_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("machine_id", sa.Uuid(), sa.ForeignKey("machines.id", ondelete="SET NULL"), nullable=True),
        sa.Column("maintenance_type", sa.String(20), nullable=False, server_default="preventive"),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("estimated_duration", sa.Float(), nullable=False),
        sa.Column("actual_duration", sa.Float(), nullable=True),
        sa.Column("required_parts", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("notify_users", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("completed_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_records_machine_id", "maintenance_records", ["machine_id"], unique=False)
    op.create_index("ix_maintenance_records_status", "maintenance_records", ["status"], unique=False)
    op.create_index("ix_maintenance_records_scheduled_date", "maintenance_records", ["scheduled_date"], unique=False)
    op.create_index("ix_maintenance_records_created_at", "maintenance_records", ["created_at"], unique=False)

    op.create_table(
        "maintenance_technicians",
        sa.Column(
            "maintenance_id",
            sa.Uuid(),
            sa.ForeignKey("maintenance_records.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.PrimaryKeyConstraint("maintenance_id", "user_id"),
    )


def downgrade() -> None:
    op.drop_table("maintenance_technicians")
    op.drop_index("ix_maintenance_records_created_at", table_name="maintenance_records")
    op.drop_index("ix_maintenance_records_scheduled_date", table_name="maintenance_records")
    op.drop_index("ix_maintenance_records_status", table_name="maintenance_records")
    op.drop_index("ix_maintenance_records_machine_id", table_name="maintenance_records")
    op.drop_table("maintenance_records")
    op.drop_index("ix_alerts_machine_priority_status", table_name="alerts")
    op.drop_index("ix_alerts_created_at", table_name="alerts")
    op.drop_index("ix_alerts_assigned_to_id", table_name="alerts")
    op.drop_index("ix_alerts_created_by_id", table_name="alerts")
    op.drop_index("ix_alerts_status", table_name="alerts")
    op.drop_index("ix_alerts_machine_id", table_name="alerts")
    op.drop_table("alerts")
    op.drop_index("ix_machines_created_at", table_name="machines")
    op.drop_index("ix_machines_status", table_name="machines")
    op.drop_index("ix_machines_location", table_name="machines")
    op.drop_index("ix_machines_name", table_name="machines")
    op.drop_table("machines")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
