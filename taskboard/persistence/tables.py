"""SQLAlchemy table definitions for the task board.

Tables are used through SQLAlchemy Core and match the schema created by the
Alembic migrations.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

metadata = MetaData()

# ============================================================================
# PROFILES TABLE (id = identity provider user id)
# ============================================================================
profiles_table = Table(
    "profiles",
    metadata,
    Column("id", UUID, primary_key=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("status", String(20), nullable=False, server_default="inactive"),
    Column("confirmed_at", TIMESTAMP(timezone=True), nullable=True),
    Column("last_sign_in_at", TIMESTAMP(timezone=True), nullable=True),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    CheckConstraint("role IN ('user', 'admin')", name="ck_profiles_role"),
    CheckConstraint("status IN ('active', 'inactive')", name="ck_profiles_status"),
)

# ============================================================================
# INVITATIONS TABLE
# ============================================================================
invitations_table = Table(
    "invitations",
    metadata,
    Column("id", UUID, primary_key=True),
    Column("email", String(320), nullable=False),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("message", Text, nullable=True),
    Column(
        "invited_by",
        UUID,
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("token", String(255), nullable=False, unique=True),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "invited_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("accepted_at", TIMESTAMP(timezone=True), nullable=True),
    Column("expires_at", TIMESTAMP(timezone=True), nullable=False),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("send_count", Integer, nullable=False, server_default="1"),
    Column("daily_send_count", Integer, nullable=False, server_default="1"),
    Column(
        "daily_send_reset_at", Date, nullable=False, server_default="CURRENT_DATE"
    ),
    Column("last_sent_at", TIMESTAMP(timezone=True), nullable=True),
    Column("version", Integer, nullable=False, server_default="1"),
    CheckConstraint("role IN ('user', 'admin')", name="ck_invitations_role"),
    CheckConstraint(
        "status IN ('pending', 'accepted', 'expired', 'revoked')",
        name="ck_invitations_status",
    ),
)

Index("idx_invitations_email", invitations_table.c.email)
Index("idx_invitations_created_at", invitations_table.c.created_at.desc())
Index(
    "uq_invitations_pending_email",
    invitations_table.c.email,
    unique=True,
    postgresql_where=text("status = 'pending'"),
)
