from datetime import datetime, timezone

from models import Match, MatchStatus


def is_match_locked(match: Match, now: datetime | None = None) -> bool:
    """A match stops taking predictions once it is completed or has kicked off."""
    now = now or datetime.now(timezone.utc)
    if match.status == MatchStatus.COMPLETED.value:
        return True
    kickoff = match.match_date
    if kickoff.tzinfo is None:
        kickoff = kickoff.replace(tzinfo=timezone.utc)
    return kickoff <= now
