# scripts/reset_db.py
"""로컬 DB 초기화(DROP SCHEMA public CASCADE). 이후 alembic upgrade head 필요."""
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from debrief.core.config import settings
from debrief.core.database_sync import get_sync_session


def reset_database() -> None:
    if settings.environment.strip().lower() == "production":
        sys.exit("❌ production 환경에서는 실행할 수 없습니다.")
    print("🧨 users·calendars·events 전부 삭제 (DROP SCHEMA public)...")
    with get_sync_session() as session:
        session.execute(text("DROP SCHEMA public CASCADE"))
        session.execute(text("CREATE SCHEMA public"))
    print("✅ 초기화 완료. alembic upgrade head 를 실행하세요.")


if __name__ == "__main__":
    reset_database()
