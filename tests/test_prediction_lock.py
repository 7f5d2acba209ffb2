from datetime import datetime, timedelta, timezone

from models import Match
from services.prediction_lock import is_match_locked

NOW = datetime(2026, 6, 14, 18, 0, tzinfo=timezone.utc)


def _match(**overrides):
    fields = {
        "id": "m1",
        "tournament_id": "t1",
        "home_team_id": "a",
        "away_team_id": "b",
        "match_date": NOW + timedelta(hours=1),
        "status": "scheduled",
    }
    fields.update(overrides)
    return Match.model_validate(fields)


def test_future_scheduled_match_is_open():
    match = _match()
    assert not is_match_locked(match, NOW)


def test_match_locks_at_kickoff():
    assert is_match_locked(_match(match_date=NOW), NOW)
    assert is_match_locked(_match(match_date=NOW - timedelta(seconds=1)), NOW)


def test_completed_match_is_locked_even_before_kickoff():
    assert is_match_locked(_match(status="completed"), NOW)


def test_in_progress_and_cancelled_follow_kickoff_time():
    assert not is_match_locked(_match(status="in_progress"), NOW)
    assert not is_match_locked(_match(status="cancelled"), NOW)
    assert is_match_locked(_match(status="cancelled", match_date=NOW - timedelta(days=1)), NOW)


def test_naive_kickoff_is_treated_as_utc():
    naive = (NOW + timedelta(minutes=5)).replace(tzinfo=None)
    assert not is_match_locked(_match(match_date=naive), NOW)


def test_offset_kickoff_compares_in_absolute_time():
    # 19:30 at +02:00 is 17:30 UTC, already past.
    kickoff = datetime(2026, 6, 14, 19, 30, tzinfo=timezone(timedelta(hours=2)))
    assert is_match_locked(_match(match_date=kickoff), NOW)
