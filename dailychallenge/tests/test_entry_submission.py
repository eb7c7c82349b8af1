"""
Entry submission: scoring, streak refresh, totals and failure results.

All dates are injected so results do not depend on the wall clock.
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from dailychallenge.core.errors import (
    LockedError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    ValidationError,
)
from dailychallenge.features.challenges.service import create_challenge
from dailychallenge.features.entries.service import list_entries, submit_entry
from dailychallenge.features.participants import persistence as participant_store
from dailychallenge.features.participants.service import get_participation, join_challenge
from dailychallenge.models.challenge import BonusConfig
from dailychallenge.models.metric import BooleanMetric, NumberMetric

START = date(2024, 3, 1)
CREATOR = "user_creator"


def day(n: int) -> date:
    return START + timedelta(days=n)


def setup_challenge(bonus=None, lock_entries_after_day=False):
    challenge = create_challenge(
        creator_id=CREATOR,
        name="Hydrate and move",
        starts_at=START,
        duration_days=30,
        metrics=[
            BooleanMetric(id="water", points=2),
            NumberMetric(id="steps", points=10, scoring_mode="scaled", threshold=10000),
        ],
        bonus=bonus,
        lock_entries_after_day=lock_entries_after_day,
        today=START,
    )
    participant = get_participation(user_id=CREATOR, challenge_id=challenge.challenge_id)
    return challenge, participant


def submit(participant_id, on, *, user_id=CREATOR, data=None, completed=True, today=None, **kwargs):
    return submit_entry(
        user_id=user_id,
        participant_id=participant_id,
        metric_data=data if data is not None else {"water": True, "steps": 10000},
        is_completed=completed,
        entry_date=on,
        today=today or on,
        now=datetime(on.year, on.month, on.day, tzinfo=timezone.utc),
        **kwargs,
    )


class TestSuccessfulSubmission:
    def test_scores_entry_and_starts_streak(self):
        _, participant = setup_challenge()
        result = submit(participant.participant_id, day(0), data={"water": True, "steps": 5000})

        assert result.success is True
        assert result.error is None
        assert result.score.base_points == 7
        assert result.score.breakdown == {"water": 2, "steps": 5}
        assert result.entry.points_earned == 7
        assert result.participant.current_streak == 1
        assert result.participant.longest_streak == 1
        assert result.participant.total_points == 7

    def test_streak_bonus_uses_streak_before_today(self):
        bonus = BonusConfig(enable_streak_bonus=True, streak_bonus_points=2)
        _, participant = setup_challenge(bonus=bonus)

        first = submit(participant.participant_id, day(0))
        second = submit(participant.participant_id, day(1))

        assert first.score.bonus_points == 0
        assert second.score.bonus_points == 2
        assert second.participant.current_streak == 2
        assert second.participant.total_points == 12 + 12 + 2

    def test_perfect_day_bonus(self):
        _, participant = setup_challenge(bonus=BonusConfig(enable_perfect_day_bonus=True))
        result = submit(participant.participant_id, day(0))
        assert result.score.bonus_points == 10
        assert result.participant.total_points == 22

    def test_resubmission_overwrites_same_day(self):
        challenge, participant = setup_challenge()
        submit(participant.participant_id, day(0), data={"water": True, "steps": 0})
        result = submit(participant.participant_id, day(0), data={"water": True, "steps": 10000}, notes="better")

        entries = list_entries(user_id=CREATOR, challenge_id=challenge.challenge_id)
        assert len(entries) == 1
        assert entries[0].notes == "better"
        assert entries[0].points_earned == 12
        assert result.participant.total_points == 12
        assert result.participant.current_streak == 1

    def test_incomplete_entry_leaves_streak_alone(self):
        _, participant = setup_challenge()
        submit(participant.participant_id, day(0))
        result = submit(participant.participant_id, day(1), completed=False, data={"water": True})

        assert result.success is True
        assert result.participant.current_streak == 1
        assert result.participant.total_points == 12 + 2

    def test_backfill_without_today_gives_zero_streak(self):
        _, participant = setup_challenge()
        backfilled = submit(participant.participant_id, day(0), today=day(2))
        assert backfilled.participant.current_streak == 0
        assert backfilled.participant.longest_streak == 0

        today = submit(participant.participant_id, day(2))
        assert today.participant.current_streak == 1

    def test_longest_streak_survives_a_break(self):
        _, participant = setup_challenge()
        for n in range(3):
            submit(participant.participant_id, day(n))
        result = submit(participant.participant_id, day(5))
        assert result.participant.current_streak == 1
        assert result.participant.longest_streak == 3

    def test_out_of_range_number_is_scored(self):
        _, participant = setup_challenge()
        result = submit(participant.participant_id, day(0), data={"water": True, "steps": 10 ** 400})

        assert result.success is True
        assert result.score.breakdown == {"water": 2, "steps": 10}
        assert result.participant.total_points == 12


class TestRejectedSubmission:
    def test_other_users_participant(self):
        _, participant = setup_challenge()
        result = submit(participant.participant_id, day(0), user_id="intruder")
        assert result.success is False
        assert isinstance(result.failure, UnauthorizedError)
        assert result.failure.code == "unauthorized"
        assert result.entry is None

    def test_unknown_participant(self):
        setup_challenge()
        result = submit("missing", day(0))
        assert isinstance(result.failure, NotFoundError)
        assert result.error == "Participant not found"

    def test_future_date(self):
        _, participant = setup_challenge()
        result = submit(participant.participant_id, day(3), today=day(2))
        assert isinstance(result.failure, ValidationError)

    def test_locked_entry_cannot_be_changed(self):
        challenge, participant = setup_challenge(lock_entries_after_day=True)
        first = submit(participant.participant_id, day(0), data={"water": True})
        assert first.entry.is_locked is True

        second = submit(participant.participant_id, day(0))
        assert isinstance(second.failure, LockedError)
        assert second.failure.status_code == 423

        entries = list_entries(user_id=CREATOR, challenge_id=challenge.challenge_id)
        assert entries[0].points_earned == 2

    def test_rejection_writes_nothing(self):
        challenge, participant = setup_challenge()
        submit(participant.participant_id, day(3), today=day(2))
        assert list_entries(user_id=CREATOR, challenge_id=challenge.challenge_id) == []


class TestStorageFailure:
    @staticmethod
    def _failing_write(*args, **kwargs):
        raise SQLAlchemyError("disk I/O error")

    def test_failed_write_returns_persistence_error(self, monkeypatch):
        _, participant = setup_challenge()
        monkeypatch.setattr(participant_store, "update_total_points", self._failing_write)

        result = submit(participant.participant_id, day(0))

        assert result.success is False
        assert isinstance(result.failure, PersistenceError)
        assert result.failure.code == "persistence_error"
        assert result.failure.status_code == 500
        assert "disk I/O error" in result.error
        assert isinstance(result.failure.cause, SQLAlchemyError)
        assert result.entry is None

    def test_failed_write_rolls_back_everything(self, monkeypatch):
        challenge, participant = setup_challenge()
        monkeypatch.setattr(participant_store, "update_total_points", self._failing_write)
        submit(participant.participant_id, day(0))
        monkeypatch.undo()

        assert list_entries(user_id=CREATOR, challenge_id=challenge.challenge_id) == []
        stored = get_participation(user_id=CREATOR, challenge_id=challenge.challenge_id)
        assert stored.current_streak == 0
        assert stored.total_points == 0

    def test_participant_usable_after_failure(self, monkeypatch):
        _, participant = setup_challenge()
        monkeypatch.setattr(participant_store, "update_total_points", self._failing_write)
        submit(participant.participant_id, day(0))
        monkeypatch.undo()

        retry = submit(participant.participant_id, day(0))
        assert retry.success is True
        assert retry.participant.total_points == 12


class TestListEntries:
    def test_oldest_first_and_date_filter(self):
        challenge, participant = setup_challenge()
        submit(participant.participant_id, day(1))
        submit(participant.participant_id, day(0), today=day(1))

        entries = list_entries(user_id=CREATOR, challenge_id=challenge.challenge_id)
        assert [e.entry_date for e in entries] == [day(0), day(1)]

        only = list_entries(user_id=CREATOR, challenge_id=challenge.challenge_id, entry_date=day(1))
        assert [e.entry_date for e in only] == [day(1)]

    def test_entries_are_per_participant(self):
        challenge, participant = setup_challenge()
        member = join_challenge(user_id="member", challenge_id=challenge.challenge_id)
        submit(participant.participant_id, day(0))
        submit(member.participant_id, day(0), user_id="member", data={"water": True})

        assert len(list_entries(user_id="member", challenge_id=challenge.challenge_id)) == 1

    def test_non_participant(self):
        challenge, _ = setup_challenge()
        with pytest.raises(NotFoundError):
            list_entries(user_id="stranger", challenge_id=challenge.challenge_id)
