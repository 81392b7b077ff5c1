"""Create users, groups, ledgers, categories and bills tables

Revision ID: 001_initial_tables
Revises:
Create Date: 2026-10-17

Uses IF NOT EXISTS since these tables may already exist from a
prior create_all() run (USE_ALEMBIC=False).
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_initial_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users table
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR PRIMARY KEY,
            firebase_uid VARCHAR NOT NULL UNIQUE,
            email VARCHAR UNIQUE,
            nickname VARCHAR(50),
            avatar VARCHAR,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_users_firebase_uid ON users(firebase_uid)")

    # groups table
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id VARCHAR PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            description VARCHAR,
            owner_id VARCHAR NOT NULL REFERENCES users(id),
            invite_code VARCHAR(6) NOT NULL UNIQUE,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_groups_owner_id ON groups(owner_id)")

    # group_members table
    op.execute("""
        CREATE TABLE IF NOT EXISTS group_members (
            id VARCHAR PRIMARY KEY,
            group_id VARCHAR NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            user_id VARCHAR NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role VARCHAR(20) NOT NULL,
            joined_at TIMESTAMP WITH TIME ZONE DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_group_members_group_id ON group_members(group_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_group_members_user_id ON group_members(user_id)")
    op.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS ix_group_members_group_user "
        "ON group_members(group_id, user_id)"
    )

    # ledgers table
    op.execute("""
        CREATE TABLE IF NOT EXISTS ledgers (
            id VARCHAR PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            description VARCHAR,
            type VARCHAR(20) NOT NULL,
            user_id VARCHAR REFERENCES users(id) ON DELETE CASCADE,
            group_id VARCHAR REFERENCES groups(id) ON DELETE CASCADE,
            currency VARCHAR(3) NOT NULL DEFAULT 'CNY',
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE,
            CONSTRAINT ck_ledgers_single_owner CHECK (
                (user_id IS NOT NULL AND group_id IS NULL)
                OR (user_id IS NULL AND group_id IS NOT NULL)
            )
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_ledgers_user_id ON ledgers(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_ledgers_group_id ON ledgers(group_id)")

    # categories table (ledger_id NULL = system default)
    op.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id VARCHAR PRIMARY KEY,
            name VARCHAR(50) NOT NULL,
            icon VARCHAR,
            type VARCHAR(20) NOT NULL,
            parent_id VARCHAR REFERENCES categories(id) ON DELETE CASCADE,
            ledger_id VARCHAR REFERENCES ledgers(id) ON DELETE CASCADE,
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_categories_ledger_id ON categories(ledger_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_categories_ledger_type ON categories(ledger_id, type)")

    # bills table (category_id deliberately unconstrained)
    op.execute("""
        CREATE TABLE IF NOT EXISTS bills (
            id VARCHAR PRIMARY KEY,
            ledger_id VARCHAR NOT NULL REFERENCES ledgers(id) ON DELETE CASCADE,
            category_id VARCHAR NOT NULL,
            category_name VARCHAR(50),
            user_id VARCHAR NOT NULL REFERENCES users(id),
            type VARCHAR(20) NOT NULL,
            amount FLOAT NOT NULL,
            note TEXT,
            bill_date DATE NOT NULL,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE,
            CONSTRAINT ck_bills_amount_positive CHECK (amount > 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_bills_ledger_id ON bills(ledger_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_bills_category_id ON bills(category_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_bills_user_id ON bills(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_bills_bill_date ON bills(bill_date)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_bills_ledger_date ON bills(ledger_id, bill_date)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_bills_ledger_category ON bills(ledger_id, category_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bills")
    op.execute("DROP TABLE IF EXISTS categories")
    op.execute("DROP TABLE IF EXISTS ledgers")
    op.execute("DROP TABLE IF EXISTS group_members")
    op.execute("DROP TABLE IF EXISTS groups")
    op.execute("DROP TABLE IF EXISTS users")
