"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _inspector():
    from sqlalchemy import inspect as sa_inspect
    return sa_inspect(op.get_bind())


def upgrade() -> None:
    inspector = _inspector()
    existing_tables = set(inspector.get_table_names())

    def existing_indexes(table: str) -> set[str]:
        if table not in existing_tables:
            return set()
        return {idx["name"] for idx in inspector.get_indexes(table)}

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("email", sa.String(), nullable=True, unique=True),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("image", sa.String(), nullable=True),
            sa.Column("role", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
        )
    idxs = existing_indexes("users")
    if "ix_users_id" not in idxs:
        op.create_index("ix_users_id", "users", ["id"])
    if "ix_users_email" not in idxs:
        op.create_index("ix_users_email", "users", ["email"])
    if "ix_users_role" not in idxs:
        op.create_index("ix_users_role", "users", ["role"])

    if "support_conversations" not in existing_tables:
        op.create_table(
            "support_conversations",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="OPEN"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )
    idxs = existing_indexes("support_conversations")
    if "ix_support_conversations_id" not in idxs:
        op.create_index("ix_support_conversations_id", "support_conversations", ["id"])
    if "ix_support_conversations_user_id" not in idxs:
        op.create_index("ix_support_conversations_user_id", "support_conversations", ["user_id"])
    if "ix_support_conversations_status" not in idxs:
        op.create_index("ix_support_conversations_status", "support_conversations", ["status"])
    if "ix_support_conversations_updated_at" not in idxs:
        op.create_index("ix_support_conversations_updated_at", "support_conversations", ["updated_at"])

    if "support_messages" not in existing_tables:
        op.create_table(
            "support_messages",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "conversation_id",
                sa.Integer(),
                sa.ForeignKey("support_conversations.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        )
    idxs = existing_indexes("support_messages")
    if "ix_support_messages_id" not in idxs:
        op.create_index("ix_support_messages_id", "support_messages", ["id"])
    if "ix_support_messages_conversation_id" not in idxs:
        op.create_index("ix_support_messages_conversation_id", "support_messages", ["conversation_id"])
    if "ix_support_messages_user_id" not in idxs:
        op.create_index("ix_support_messages_user_id", "support_messages", ["user_id"])
    if "ix_support_messages_is_read" not in idxs:
        op.create_index("ix_support_messages_is_read", "support_messages", ["is_read"])

    if "categories" not in existing_tables:
        op.create_table(
            "categories",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False, unique=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("image_url", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
        )
    idxs = existing_indexes("categories")
    if "ix_categories_name" not in idxs:
        op.create_index("ix_categories_name", "categories", ["name"])

    if "products" not in existing_tables:
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("price", sa.Float(), nullable=True),
            sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=True),
            sa.Column("featured", sa.Boolean(), nullable=True),
            sa.Column("in_stock", sa.Boolean(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)")),
        )
    idxs = existing_indexes("products")
    if "ix_products_name" not in idxs:
        op.create_index("ix_products_name", "products", ["name"])
    if "ix_products_category_id" not in idxs:
        op.create_index("ix_products_category_id", "products", ["category_id"])
    if "ix_products_featured" not in idxs:
        op.create_index("ix_products_featured", "products", ["featured"])

    if "product_images" not in existing_tables:
        op.create_table(
            "product_images",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=True),
            sa.Column("url", sa.String(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=True),
        )
    idxs = existing_indexes("product_images")
    if "ix_product_images_product_id" not in idxs:
        op.create_index("ix_product_images_product_id", "product_images", ["product_id"])


def downgrade() -> None:
    for table in [
        "product_images",
        "products",
        "categories",
        "support_messages",
        "support_conversations",
        "users",
    ]:
        if table in set(_inspector().get_table_names()):
            op.drop_table(table)
