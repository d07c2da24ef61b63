"""Initial plots ERP schema

Revision ID: 20261016_initial
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261016_initial"
down_revision = None
branch_labels = None
depends_on = None


OPEN_BOOKING_WHERE = "status IN ('hold', 'booking_confirmed')"


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("reports_to_user_id", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["reports_to_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_role", ["role"], unique=False)
        batch_op.create_index("ix_users_role_active", ["role", "active"], unique=False)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("location_city", sa.String(120), nullable=True),
        sa.Column("location_area", sa.String(160), nullable=True),
        sa.Column("geo_lat", sa.Float(), nullable=True),
        sa.Column("geo_lng", sa.Float(), nullable=True),
        sa.Column("developer_name", sa.String(160), nullable=True),
        sa.Column("launch_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("default_plot_size_unit", sa.String(8), nullable=False),
        sa.Column("base_rate_cents", sa.Integer(), nullable=True),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("projects", schema=None) as batch_op:
        batch_op.create_index("ix_projects_code", ["code"], unique=True)
        batch_op.create_index("ix_projects_status", ["status"], unique=False)

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column("first_name", sa.String(80), nullable=False),
        sa.Column("last_name", sa.String(80), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("project_interest_ids", sa.JSON(), nullable=False),
        sa.Column("budget_min_cents", sa.Integer(), nullable=True),
        sa.Column("budget_max_cents", sa.Integer(), nullable=True),
        sa.Column("plot_size_pref", sa.Float(), nullable=True),
        sa.Column("facing_pref", sa.String(4), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("reason_lost", sa.String(255), nullable=False),
        sa.Column("lead_score", sa.Integer(), nullable=False, server_default=sa.text("50")),
        sa.Column("assigned_to_user_id", sa.Integer(), nullable=True),
        sa.Column("duplicate_of", sa.Integer(), nullable=True),
        sa.Column("last_contact_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_followup_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("consent_whatsapp", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["assigned_to_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["duplicate_of"], ["leads.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("leads", schema=None) as batch_op:
        batch_op.create_index("ix_leads_status", ["status"], unique=False)
        batch_op.create_index("ix_leads_assigned_to_user_id", ["assigned_to_user_id"], unique=False)
        batch_op.create_index("ix_leads_assigned_status", ["assigned_to_user_id", "status"], unique=False)

    op.create_table(
        "plots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("block", sa.String(16), nullable=True),
        sa.Column("phase", sa.String(16), nullable=True),
        sa.Column("plot_no", sa.String(32), nullable=False),
        sa.Column("size", sa.Float(), nullable=False),
        sa.Column("size_unit", sa.String(8), nullable=False),
        sa.Column("facing", sa.String(4), nullable=False),
        sa.Column("corner", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("base_rate_cents", sa.Integer(), nullable=False),
        sa.Column("current_rate_cents", sa.Integer(), nullable=False),
        sa.Column("min_rate_cents", sa.Integer(), nullable=False),
        sa.Column("max_rate_cents", sa.Integer(), nullable=False),
        sa.Column("hold_expiry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_status_change_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("buyer_id", sa.Integer(), nullable=True),
        sa.Column("sales_owner_id", sa.Integer(), nullable=True),
        sa.Column("coordinates", sa.JSON(), nullable=True),
        sa.Column("utilities", sa.JSON(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint(
            "min_rate_cents <= current_rate_cents AND current_rate_cents <= max_rate_cents",
            name="ck_plots_current_rate_in_bounds",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["buyer_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["sales_owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "plot_no", name="uq_plots_project_plot_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("plots", schema=None) as batch_op:
        batch_op.create_index("ix_plots_project_id", ["project_id"], unique=False)
        batch_op.create_index("ix_plots_status", ["status"], unique=False)
        batch_op.create_index("ix_plots_buyer_id", ["buyer_id"], unique=False)
        batch_op.create_index("ix_plots_sales_owner_id", ["sales_owner_id"], unique=False)
        batch_op.create_index("ix_plots_project_status", ["project_id", "status"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("plot_id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("sales_user_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(24), nullable=False),
        sa.Column("token_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("token_due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("token_received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("agreement_value_cents", sa.Integer(), nullable=False),
        sa.Column("discount_pct", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("approval_note", sa.String(255), nullable=False, server_default=""),
        sa.Column("payment_plan", sa.String(16), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        sa.Column("re_release_eligible_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(255), nullable=False, server_default=""),
        sa.Column("cancellation_fee_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cancelled_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["plot_id"], ["plots.id"]),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["sales_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["approved_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["cancelled_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("bookings", schema=None) as batch_op:
        batch_op.create_index("ix_bookings_plot_id", ["plot_id"], unique=False)
        batch_op.create_index("ix_bookings_lead_id", ["lead_id"], unique=False)
        batch_op.create_index("ix_bookings_status", ["status"], unique=False)
        batch_op.create_index("ix_bookings_status_token_due", ["status", "token_due_at"], unique=False)
        batch_op.create_index(
            "uq_bookings_open_plot",
            ["plot_id"],
            unique=True,
            sqlite_where=sa.text(OPEN_BOOKING_WHERE),
            postgresql_where=sa.text(OPEN_BOOKING_WHERE),
        )

    op.create_table(
        "plot_status_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("plot_id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=True),
        sa.Column("old_status", sa.String(16), nullable=False),
        sa.Column("new_status", sa.String(16), nullable=False),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("changed_by_user_id", sa.Integer(), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["plot_id"], ["plots.id"]),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.ForeignKeyConstraint(["changed_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("plot_status_history", schema=None) as batch_op:
        batch_op.create_index("ix_plot_status_history_plot_id", ["plot_id"], unique=False)
        batch_op.create_index("ix_plot_status_history_plot_changed", ["plot_id", "changed_at"], unique=False)

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("outcome", sa.String(16), nullable=False),
        sa.Column("next_action_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("activities", schema=None) as batch_op:
        batch_op.create_index("ix_activities_lead_id", ["lead_id"], unique=False)
        batch_op.create_index("ix_activities_lead_created", ["lead_id", "created_at"], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("booking_id", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("method", sa.String(8), nullable=False),
        sa.Column("txn_ref", sa.String(64), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("receipt_url", sa.String(512), nullable=True),
        sa.Column("posted_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.ForeignKeyConstraint(["posted_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payments", schema=None) as batch_op:
        batch_op.create_index("ix_payments_booking_id", ["booking_id"], unique=False)

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entity_type", sa.String(16), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("doc_type", sa.String(16), nullable=False),
        sa.Column("url", sa.String(512), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), nullable=False),
        sa.Column("verified_by", sa.Integer(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["verified_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("documents", schema=None) as batch_op:
        batch_op.create_index("ix_documents_status", ["status"], unique=False)
        batch_op.create_index("ix_documents_entity", ["entity_type", "entity_id"], unique=False)

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("default_hold_hours", sa.Integer(), nullable=False, server_default=sa.text("48")),
        sa.Column("auto_expire_hold", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("auto_reassign_dead_leads_days", sa.Integer(), nullable=False, server_default=sa.text("14")),
        sa.Column("default_token_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("whatsapp_api_key", sa.String(255), nullable=True),
        sa.Column("email_smtp", sa.JSON(), nullable=False),
        sa.Column("maps_api_key", sa.String(255), nullable=True),
        sa.Column("discount_approval_thresholds", sa.JSON(), nullable=False),
        sa.Column("updated_by_user_id", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["updated_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("settings")
    op.drop_table("documents")
    op.drop_table("payments")
    op.drop_table("activities")
    op.drop_table("plot_status_history")
    op.drop_table("bookings")
    op.drop_table("plots")
    op.drop_table("leads")
    op.drop_table("projects")
    op.drop_table("users")
