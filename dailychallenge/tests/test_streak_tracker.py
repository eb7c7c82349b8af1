from datetime import date, datetime, timedelta

from dailychallenge.features.streaks.tracker import compute_streaks, normalize_day

TODAY = date(2024, 3, 10)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def test_consecutive_days_ending_today():
    result = compute_streaks([days_ago(0), days_ago(1), days_ago(2)], today=TODAY)
    assert result.current_streak == 3
    assert result.longest_streak == 3


def test_today_not_completed_means_zero():
    result = compute_streaks([days_ago(1), days_ago(2)], today=TODAY, previous_longest=2)
    assert result.current_streak == 0
    assert result.longest_streak == 2


def test_gap_stops_the_walk():
    result = compute_streaks([days_ago(0), days_ago(2), days_ago(3)], today=TODAY)
    assert result.current_streak == 1


def test_future_dates_ignored():
    result = compute_streaks([TODAY + timedelta(days=1), days_ago(0)], today=TODAY)
    assert result.current_streak == 1


def test_longest_only_ratchets_up():
    assert compute_streaks([days_ago(0)], today=TODAY, previous_longest=10).longest_streak == 10
    assert compute_streaks([days_ago(0), days_ago(1)], today=TODAY, previous_longest=1).longest_streak == 2


def test_duplicates_and_mixed_inputs():
    completed = [
        days_ago(0),
        datetime(2024, 3, 10, 8, 30),
        "2024-03-09",
        "2024-03-08T22:15:00",
    ]
    result = compute_streaks(completed, today="2024-03-10")
    assert result.current_streak == 3


def test_empty_history():
    result = compute_streaks([], today=TODAY)
    assert result.current_streak == 0
    assert result.longest_streak == 0


def test_normalize_day():
    assert normalize_day(date(2024, 1, 2)) == date(2024, 1, 2)
    assert normalize_day(datetime(2024, 1, 2, 23, 59)) == date(2024, 1, 2)
    assert normalize_day("2024-01-02T05:00:00") == date(2024, 1, 2)
