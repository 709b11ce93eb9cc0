"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="user"),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "dockets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("docket_no", sa.String(length=10), nullable=True),
        sa.Column("client", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="In Progress"),
        sa.Column("tag", sa.String(length=20), nullable=False, server_default="Individual"),
        sa.Column("agent_id", sa.String(length=36), nullable=True),
        sa.Column("passengers", sa.JSON(), nullable=False),
        sa.Column("itinerary", sa.JSON(), nullable=False),
        sa.Column("files", sa.JSON(), nullable=False),
        sa.Column("comments", sa.JSON(), nullable=False),
        sa.Column("payments", sa.JSON(), nullable=False),
        sa.Column("invoices", sa.JSON(), nullable=False),
        sa.Column("search_tags", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_dockets_docket_no", "dockets", ["docket_no"], unique=True)
    op.create_index("ix_dockets_status", "dockets", ["status"], unique=False)
    op.create_index("ix_dockets_agent_id", "dockets", ["agent_id"], unique=False)
    op.create_index("ix_dockets_created_by", "dockets", ["created_by"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("invoice_number", sa.String(length=20), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("docket_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("terms", sa.String(length=30), nullable=False, server_default="Due on Receipt"),
        sa.Column("place_of_supply", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("gst_type", sa.String(length=12), nullable=False, server_default="IGST"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.Column("gst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("grand_total", sa.Numeric(14, 2), nullable=False),
        sa.Column("billed_to", sa.JSON(), nullable=False),
        sa.Column("line_items", sa.JSON(), nullable=False),
        sa.Column("company_settings", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_by", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"], unique=True)
    op.create_index("ix_invoices_sequence", "invoices", ["sequence"], unique=False)
    op.create_index("ix_invoices_docket_id", "invoices", ["docket_id"], unique=False)
    op.create_index("ix_invoices_customer_id", "invoices", ["customer_id"], unique=False)

    op.create_table(
        "company_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("last_invoice_number", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "deletion_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("docket_id", sa.String(length=36), nullable=False),
        sa.Column("client_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("deleted_by", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_deletion_log_docket_id", "deletion_log", ["docket_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)

    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_person", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("contact_number", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "agents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_info", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "customer_master",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("customer_code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("address", sa.Text(), nullable=False, server_default=""),
        sa.Column("gstin", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_customer_master_customer_code", "customer_master", ["customer_code"], unique=True)
    op.create_index("ix_customer_master_name", "customer_master", ["name"], unique=False)

    op.create_table(
        "leads",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("company", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("source", sa.String(length=40), nullable=False, server_default="Walk-in"),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="cold"),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("assigned_to", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("expected_value", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("created_date", sa.String(length=10), nullable=False, server_default=""),
        sa.Column("last_contact_date", sa.String(length=10), nullable=True),
        sa.Column("next_follow_up_date", sa.String(length=10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("travel_dates", sa.JSON(), nullable=False),
        sa.Column("number_of_pax", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("number_of_nights", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("itinerary", sa.JSON(), nullable=False),
        sa.Column("quotation", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_leads_status", "leads", ["status"], unique=False)


def downgrade() -> None:
    for table in ("leads", "customer_master", "agents", "suppliers", "audit_logs", "deletion_log",
                  "company_settings", "invoices", "dockets", "users"):
        op.drop_table(table)
