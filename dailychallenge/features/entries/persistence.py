"""Daily entry storage on the daily_entries table."""

from datetime import date
from typing import List, Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.orm import Session

from dailychallenge.core.database import daily_entries
from dailychallenge.models.entry import DailyEntry


def row_to_entry(row) -> DailyEntry:
    return DailyEntry(
        entry_id=row.id,
        participant_id=row.participant_id,
        entry_date=row.entry_date,
        metric_data=row.metric_data or {},
        is_completed=row.is_completed,
        is_locked=row.is_locked,
        notes=row.notes,
        points_earned=row.points_earned or 0,
        bonus_points=row.bonus_points or 0,
        submitted_at=row.submitted_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def get_entry_for_date(session: Session, participant_id: str, entry_date: date) -> Optional[DailyEntry]:
    row = session.execute(
        select(daily_entries).where(
            daily_entries.c.participant_id == participant_id,
            daily_entries.c.entry_date == entry_date,
        )
    ).first()
    return row_to_entry(row) if row else None


def list_entries(
    session: Session,
    participant_id: str,
    *,
    entry_date: Optional[date] = None,
) -> List[DailyEntry]:
    """Entries for a participant, oldest first."""
    query = select(daily_entries).where(daily_entries.c.participant_id == participant_id)
    if entry_date is not None:
        query = query.where(daily_entries.c.entry_date == entry_date)
    rows = session.execute(query.order_by(daily_entries.c.entry_date.asc())).all()
    return [row_to_entry(row) for row in rows]


def completed_dates(session: Session, participant_id: str) -> List[date]:
    """Dates with a completed entry, most recent first."""
    rows = session.execute(
        select(daily_entries.c.entry_date)
        .where(
            daily_entries.c.participant_id == participant_id,
            daily_entries.c.is_completed.is_(True),
        )
        .order_by(daily_entries.c.entry_date.desc())
    ).all()
    return [row.entry_date for row in rows]


def sum_points(session: Session, participant_id: str) -> int:
    total = session.execute(
        select(
            func.coalesce(
                func.sum(daily_entries.c.points_earned + daily_entries.c.bonus_points), 0
            )
        ).where(daily_entries.c.participant_id == participant_id)
    ).scalar_one()
    return int(total or 0)


def insert_entry(session: Session, entry: DailyEntry) -> None:
    session.execute(
        insert(daily_entries).values(
            id=entry.entry_id,
            participant_id=entry.participant_id,
            entry_date=entry.entry_date,
            metric_data=entry.metric_data,
            is_completed=entry.is_completed,
            is_locked=entry.is_locked,
            notes=entry.notes,
            points_earned=entry.points_earned,
            bonus_points=entry.bonus_points,
            submitted_at=entry.submitted_at,
            created_at=entry.submitted_at,
            updated_at=entry.submitted_at,
        )
    )


def update_entry(session: Session, entry: DailyEntry) -> None:
    session.execute(
        update(daily_entries)
        .where(daily_entries.c.id == entry.entry_id)
        .values(
            metric_data=entry.metric_data,
            is_completed=entry.is_completed,
            is_locked=entry.is_locked,
            notes=entry.notes,
            points_earned=entry.points_earned,
            bonus_points=entry.bonus_points,
            submitted_at=entry.submitted_at,
            updated_at=entry.submitted_at,
        )
    )


def update_entry_points(session: Session, entry_id: str, *, points_earned: int, bonus_points: int) -> None:
    session.execute(
        update(daily_entries)
        .where(daily_entries.c.id == entry_id)
        .values(points_earned=points_earned, bonus_points=bonus_points)
    )
