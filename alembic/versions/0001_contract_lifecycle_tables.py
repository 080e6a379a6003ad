"""contract lifecycle tables + version immutability trigger

Revision ID: 0001_contract_lifecycle_tables
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_contract_lifecycle_tables"
down_revision = None
branch_labels = None
depends_on = None


CONTRACT_STATUSES = (
    "draft",
    "owner_signed",
    "fully_signed",
    "active",
    "expired",
    "waiting_for_modification",
    "modification_in_progress",
    "modified",
    "terminated",
    "cancelled",
)


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _ts(name: str, nullable: bool = True, server_now: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if server_now else None,
    )


def upgrade():
    # Properties (owned by the property service; status flipped here)
    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="available"),
        _ts("created_at", nullable=False, server_now=True),
        _ts("updated_at", nullable=False, server_now=True),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])

    # Offers
    op.create_table(
        "offers",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("properties.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("monthly_rent", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit", sa.Numeric(10, 2), nullable=True),
        sa.Column("conditions", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        _ts("created_at", nullable=False, server_now=True),
        _ts("updated_at", nullable=False, server_now=True),
    )
    op.create_index("ix_offers_property_status", "offers", ["property_id", "status"])
    op.create_index("ix_offers_tenant", "offers", ["tenant_id"])

    # Contracts
    op.create_table(
        "contracts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "offer_id",
            sa.Uuid(),
            sa.ForeignKey("offers.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "property_id",
            sa.Uuid(),
            sa.ForeignKey("properties.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("contract_data", _json(), nullable=False),
        sa.Column("owner_signature", sa.Text(), nullable=True),
        sa.Column("tenant_signature", sa.Text(), nullable=True),
        _ts("owner_signed_at"),
        _ts("tenant_signed_at"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        _ts("tenant_sign_deadline"),
        sa.Column("modification_summary", sa.Text(), nullable=True),
        sa.Column("termination_reason", sa.Text(), nullable=True),
        sa.Column("terminated_by", sa.String(length=128), nullable=True),
        _ts("terminated_at"),
        _ts("created_at", nullable=False, server_now=True),
        _ts("updated_at", nullable=False, server_now=True),
        sa.CheckConstraint(
            "tenant_signature IS NULL OR owner_signature IS NOT NULL",
            name="ck_contracts_tenant_sig_requires_owner_sig",
        ),
        sa.CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in CONTRACT_STATUSES)),
            name="ck_contracts_status_known",
        ),
    )
    # at most one active contract per property
    op.create_index(
        "uq_contracts_one_active_per_property",
        "contracts",
        ["property_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )
    op.create_index("ix_contracts_property_status", "contracts", ["property_id", "status"])
    op.create_index("ix_contracts_tenant", "contracts", ["tenant_id"])
    op.create_index("ix_contracts_owner", "contracts", ["owner_id"])
    op.create_index("ix_contracts_status_deadline", "contracts", ["status", "tenant_sign_deadline"])

    # Contract versions (append-only)
    op.create_table(
        "contract_versions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            sa.Uuid(),
            sa.ForeignKey("contracts.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("contract_data", _json(), nullable=False),
        sa.Column("owner_signature", sa.Text(), nullable=True),
        sa.Column("tenant_signature", sa.Text(), nullable=True),
        _ts("owner_signed_at"),
        _ts("tenant_signed_at"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="superseded"),
        sa.Column("modification_reason", sa.Text(), nullable=True),
        _ts("created_at", nullable=False, server_now=True),
        sa.UniqueConstraint("contract_id", "version", name="uq_contract_versions_contract_version"),
        sa.CheckConstraint("version >= 1", name="ck_contract_versions_version_positive"),
    )

    # Modification / termination requests
    op.create_table(
        "contract_change_requests",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            sa.Uuid(),
            sa.ForeignKey("contracts.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("requester_id", sa.String(length=128), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("fields_to_modify", _json(), nullable=True),
        sa.Column("modification_reason", sa.Text(), nullable=True),
        sa.Column("requested_changes", _json(), nullable=True),
        _ts("modification_deadline"),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("detailed_reason", sa.Text(), nullable=True),
        sa.Column("tenant_response", sa.Text(), nullable=True),
        _ts("responded_at"),
        _ts("created_at", nullable=False, server_now=True),
        _ts("updated_at", nullable=False, server_now=True),
        sa.CheckConstraint("kind IN ('modification', 'termination')", name="ck_change_requests_kind"),
        sa.CheckConstraint(
            "kind <> 'modification' OR "
            "(fields_to_modify IS NOT NULL AND modification_reason IS NOT NULL "
            "AND reason IS NULL AND detailed_reason IS NULL)",
            name="ck_change_requests_modification_fields",
        ),
        sa.CheckConstraint(
            "kind <> 'termination' OR "
            "(reason IS NOT NULL AND fields_to_modify IS NULL AND modification_reason IS NULL "
            "AND requested_changes IS NULL AND modification_deadline IS NULL)",
            name="ck_change_requests_termination_fields",
        ),
    )
    op.create_index(
        "ix_change_requests_contract_kind_status",
        "contract_change_requests",
        ["contract_id", "kind", "status"],
    )
    op.create_index("ix_change_requests_requester", "contract_change_requests", ["requester_id"])
    op.create_index(
        "uq_change_requests_one_pending_per_kind",
        "contract_change_requests",
        ["contract_id", "kind"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    # Notifications (polled)
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("related_id", sa.String(length=64), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("created_at", nullable=False, server_now=True),
    )
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("contract_id", sa.String(length=64), nullable=True),
        sa.Column("actor_id", sa.String(length=128), nullable=True),
        sa.Column("actor_role", sa.String(length=32), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("request_id", sa.String(length=128), nullable=True),
        sa.Column("details_json", _json(), nullable=False),
        _ts("created_at", nullable=False, server_now=True),
    )
    op.create_index("ix_audit_logs_contract", "audit_logs", ["contract_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # Raw-SQL guard mirroring the ORM listeners on contract_versions
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            """
            CREATE OR REPLACE FUNCTION prevent_contract_version_mutation()
            RETURNS trigger AS $$
            BEGIN
                RAISE EXCEPTION 'contract_versions rows are immutable (append-only).';
            END;
            $$ LANGUAGE plpgsql;
            """
        )
        op.execute(
            """
            DROP TRIGGER IF EXISTS trg_prevent_contract_version_mutation ON contract_versions;
            CREATE TRIGGER trg_prevent_contract_version_mutation
            BEFORE UPDATE OR DELETE ON contract_versions
            FOR EACH ROW
            EXECUTE FUNCTION prevent_contract_version_mutation();
            """
        )


def downgrade():
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            "DROP TRIGGER IF EXISTS trg_prevent_contract_version_mutation ON contract_versions;"
        )
        op.execute("DROP FUNCTION IF EXISTS prevent_contract_version_mutation();")

    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_contract", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("uq_change_requests_one_pending_per_kind", table_name="contract_change_requests")
    op.drop_index("ix_change_requests_requester", table_name="contract_change_requests")
    op.drop_index("ix_change_requests_contract_kind_status", table_name="contract_change_requests")
    op.drop_table("contract_change_requests")

    op.drop_table("contract_versions")

    op.drop_index("ix_contracts_status_deadline", table_name="contracts")
    op.drop_index("ix_contracts_owner", table_name="contracts")
    op.drop_index("ix_contracts_tenant", table_name="contracts")
    op.drop_index("ix_contracts_property_status", table_name="contracts")
    op.drop_index("uq_contracts_one_active_per_property", table_name="contracts")
    op.drop_table("contracts")

    op.drop_index("ix_offers_tenant", table_name="offers")
    op.drop_index("ix_offers_property_status", table_name="offers")
    op.drop_table("offers")

    op.drop_index("ix_properties_owner_id", table_name="properties")
    op.drop_table("properties")
