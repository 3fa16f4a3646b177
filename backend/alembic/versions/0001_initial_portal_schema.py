"""Initial portal schema: users, onboarding drafts, uploaded documents.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

The partial unique index on onboarding_drafts keeps each user to a
single open (incomplete) draft.
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

user_role = sa.Enum("admin", "staff", "client", name="user_role")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="client"),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_subject_id", "users", ["subject_id"], unique=True)
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "onboarding_drafts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("step_data", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("current_step", sa.String(32), nullable=False, server_default="identify-provider"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("provider_id", sa.String(64), unique=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_onboarding_drafts_user_id", "onboarding_drafts", ["user_id"])
    op.create_index(
        "uq_onboarding_drafts_user_open",
        "onboarding_drafts",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_completed = false"),
        sqlite_where=sa.text("is_completed = 0"),
    )

    op.create_table(
        "uploaded_documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "onboarding_draft_id",
            sa.Integer(),
            sa.ForeignKey("onboarding_drafts.id"),
            nullable=False,
        ),
        sa.Column("document_type", sa.String(100), nullable=False),
        sa.Column("original_filename", sa.String(255), nullable=False),
        sa.Column("stored_filename", sa.String(255), nullable=False),
        sa.Column("storage_key", sa.String(512), nullable=False),
        sa.Column("relocation_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False, server_default="application/octet-stream"),
        sa.Column("step_name", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_uploaded_documents_onboarding_draft_id",
        "uploaded_documents",
        ["onboarding_draft_id"],
    )


def downgrade() -> None:
    op.drop_table("uploaded_documents")
    op.drop_index("uq_onboarding_drafts_user_open", table_name="onboarding_drafts")
    op.drop_table("onboarding_drafts")
    op.drop_table("users")
    user_role.drop(op.get_bind(), checkfirst=True)
