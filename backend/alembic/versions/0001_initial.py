"""Initial schema: projects, tasks, resources, dependencies, assignments.

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-19
"""

from alembic import op

from pm_api.db.base import Base
from pm_api import models  # noqa: F401

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
