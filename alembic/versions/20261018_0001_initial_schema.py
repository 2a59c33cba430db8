"""initial schema

Revision ID: 20261018_0001
Revises: 
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('user', 'admin')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_refresh_tokens_id", "refresh_tokens", ["id"], unique=False)
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"], unique=False)
    op.create_index("ix_refresh_tokens_token_hash", "refresh_tokens", ["token_hash"], unique=True)

    op.create_table(
        "email_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("token_type", sa.String(length=50), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "token_type IN ('email_verification', 'password_reset')",
            name="check_email_token_type",
        ),
    )
    op.create_index("ix_email_tokens_id", "email_tokens", ["id"], unique=False)
    op.create_index("ix_email_tokens_user_id", "email_tokens", ["user_id"], unique=False)
    op.create_index("ix_email_tokens_token_hash", "email_tokens", ["token_hash"], unique=True)

    op.create_table(
        "shops",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("shop_domain", sa.String(length=255), nullable=False, unique=True),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("installed_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("uninstalled_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_shops_id", "shops", ["id"], unique=False)

    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("shop_id", sa.Integer(), sa.ForeignKey("shops.id", ondelete="SET NULL"), nullable=True),
        sa.Column("quiz_name", sa.String(length=255), nullable=False),
        sa.Column("product_page_url", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("brand_logo_url", sa.String(length=500), nullable=True),
        sa.Column("color_primary", sa.String(length=7), nullable=True),
        sa.Column("color_secondary", sa.String(length=7), nullable=True),
        sa.Column("color_text_default", sa.String(length=7), nullable=True),
        sa.Column("color_text_hover", sa.String(length=7), nullable=True),
        sa.Column("quiz_start_url", sa.String(length=500), nullable=True),
        sa.Column("custom_domain", sa.String(length=255), nullable=True, unique=True),
        sa.Column("shopify_page_id", sa.BigInteger(), nullable=True),
        sa.Column("shopify_page_handle", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_quizzes_id", "quizzes", ["id"], unique=False)
    op.create_index("ix_quizzes_user_id", "quizzes", ["user_id"], unique=False)
    op.create_index("ix_quizzes_shop_id", "quizzes", ["shop_id"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence_order", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=True),
        sa.Column("interaction_type", sa.String(length=50), nullable=False),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("instructions_text", sa.String(length=500), nullable=True),
        sa.Column("loader_text", sa.String(length=500), nullable=True),
        sa.Column("popup_question", sa.Text(), nullable=True),
        sa.Column("loader_bars", JSONB, nullable=True),
        sa.Column("result_page_config", JSONB, nullable=True),
        sa.Column("timeline_projection_config", JSONB, nullable=True),
        sa.Column("educational_box_title", sa.String(length=500), nullable=True),
        sa.Column("educational_box_text", sa.Text(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_questions_id", "questions", ["id"], unique=False)
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"], unique=False)
    op.create_index(
        "unique_active_quiz_sequence",
        "questions",
        ["quiz_id", "sequence_order"],
        unique=True,
        postgresql_where=sa.text("is_archived = false"),
        sqlite_where=sa.text("is_archived = 0"),
    )

    op.create_table(
        "answer_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("option_text", sa.String(length=500), nullable=False),
        sa.Column("associated_value", sa.String(length=100), nullable=False),
        sa.Column("option_image_url", sa.String(length=500), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_answer_options_id", "answer_options", ["id"], unique=False)
    op.create_index("ix_answer_options_question_id", "answer_options", ["question_id"], unique=False)

    op.create_table(
        "user_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "last_question_viewed",
            sa.Integer(),
            sa.ForeignKey("questions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("final_profile", sa.String(length=255), nullable=True),
        sa.Column("utm_params", JSONB, nullable=True),
    )
    op.create_index("ix_user_sessions_id", "user_sessions", ["id"], unique=False)
    op.create_index("ix_user_sessions_quiz_id", "user_sessions", ["quiz_id"], unique=False)
    op.create_index("ix_user_sessions_started_at", "user_sessions", ["started_at"], unique=False)

    op.create_table(
        "user_answers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("session_id", sa.Uuid(), sa.ForeignKey("user_sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "selected_option_id",
            sa.Integer(),
            sa.ForeignKey("answer_options.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("answered_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_answers_id", "user_answers", ["id"], unique=False)
    op.create_index("ix_user_answers_session_id", "user_answers", ["session_id"], unique=False)
    op.create_index("ix_user_answers_question_id", "user_answers", ["question_id"], unique=False)
    op.create_index("ix_user_answers_selected_option_id", "user_answers", ["selected_option_id"], unique=False)


def downgrade() -> None:
    op.drop_table("user_answers")
    op.drop_table("user_sessions")
    op.drop_table("answer_options")
    op.drop_index("unique_active_quiz_sequence", table_name="questions")
    op.drop_table("questions")
    op.drop_table("quizzes")
    op.drop_table("shops")
    op.drop_table("email_tokens")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
