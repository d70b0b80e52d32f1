"""
캘린더 공개 상태 점검 (동기 DB). 로컬 검증용.
사용: python scripts/check_calendars.py [slug 또는 public_id]
"""
import os
import sys
import uuid

_src_dir = os.path.dirname(os.path.abspath(__file__))
_project_root = os.path.dirname(_src_dir)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from sqlalchemy import func, or_, select

from debrief.core.database_sync import get_sync_session, init_sync_db
from debrief.models.calendar import Calendar


def _print_calendar(row: Calendar) -> None:
    print(row.id, row.owner_id, row.is_default, row.is_public, row.public_id, row.slug or "-", row.title)


def main() -> None:
    init_sync_db()
    with get_sync_session() as s:
        total = s.execute(select(func.count()).select_from(Calendar)).scalar_one()
        public = s.execute(
            select(func.count()).select_from(Calendar).where(Calendar.is_public.is_(True))
        ).scalar_one()
        print(f"calendars: {total} (public: {public})")

        # owner당 기본 캘린더 2개 이상(동시 생성 경합 흔적)
        dupes = s.execute(
            select(Calendar.owner_id, func.count())
            .where(Calendar.is_default.is_(True))
            .group_by(Calendar.owner_id)
            .having(func.count() > 1)
        ).all()
        for owner_id, count in dupes:
            print(f"owner {owner_id}: {count} default calendars")

        if len(sys.argv) < 2:
            return
        identifier = sys.argv[1]
        conditions = [Calendar.slug == identifier]
        try:
            conditions.append(Calendar.public_id == uuid.UUID(identifier))
        except ValueError:
            pass
        rows = s.execute(select(Calendar).where(or_(*conditions))).scalars().all()
        if not rows:
            print(f"no calendar with slug/public_id {identifier}")
        for row in rows:
            _print_calendar(row)


if __name__ == "__main__":
    main()
