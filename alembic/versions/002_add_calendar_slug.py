"""add calendars.slug (unique, nullable)

Revision ID: 002
Revises: 001
Create Date: 2026-08-03

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, Sequence[str], None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("calendars", sa.Column("slug", sa.String(50), nullable=True))
    # NULL은 여러 행 허용. 값이 있으면 전역 유일. 동시 생성 경합의 최종 판정자.
    op.create_unique_constraint("uq_calendars_slug", "calendars", ["slug"])


def downgrade() -> None:
    op.drop_constraint("uq_calendars_slug", "calendars", type_="unique")
    op.drop_column("calendars", "slug")
