"""Create users and blogs tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema: accounts and their blog posts.
How:   Ids are generated by the application (uuid4), so no database
       extension or server-side UUID default is needed.

Rollback: downgrade() drops both tables (all posts and accounts are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "name",
            sa.String(100),
            nullable=False,
            comment="Display name shown as the blog byline",
        ),
        sa.Column(
            "email",
            sa.String(255),
            nullable=False,
            comment="Login identifier, lower-cased",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash of the user's password",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "blogs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "cover_image",
            sa.String(1024),
            nullable=False,
            server_default=sa.text("''"),
            comment="URL of the cover image; empty string when absent",
        ),
        sa.Column(
            "content_images",
            sa.JSON(),
            nullable=False,
            comment="URLs of images embedded in the post body",
        ),
        sa.Column("author_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_blogs_author_id", "blogs", ["author_id"])

    # Listing always orders newest first
    op.create_index(
        "idx_blogs_created_at",
        "blogs",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_blogs_created_at", table_name="blogs")
    op.drop_index("ix_blogs_author_id", table_name="blogs")
    op.drop_table("blogs")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
