"""
Typed records for rows returned by the hosted database.

Rows are validated into these models as soon as they come back from
PostgREST so handlers never poke at untyped dicts.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserStatus(str, Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class TournamentStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Record(BaseModel):
    # Joined relations and columns added by later migrations pass through.
    model_config = ConfigDict(extra="allow", use_enum_values=True)


class User(Record):
    id: str
    email: Optional[str] = None
    screen_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_admin: bool = False
    status: UserStatus = UserStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value


class PublicUser(BaseModel):
    """User fields that are safe to show to anyone."""

    id: str
    screen_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Team(Record):
    id: str
    name: str
    short_name: str
    country_code: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Tournament(Record):
    id: str
    name: str
    sport: str
    start_date: date
    end_date: date
    status: TournamentStatus = TournamentStatus.UPCOMING
    scoring_rules: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TournamentTeam(Record):
    tournament_id: str
    team_id: str
    created_at: Optional[datetime] = None


class TournamentParticipant(Record):
    tournament_id: str
    user_id: str
    joined_at: Optional[datetime] = None


class Match(Record):
    id: str
    tournament_id: str
    home_team_id: str
    away_team_id: str
    match_date: datetime
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: MatchStatus = MatchStatus.SCHEDULED
    round: Optional[str] = None
    multiplier: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_settled(self) -> bool:
        return (
            self.status == MatchStatus.COMPLETED.value
            and self.home_score is not None
            and self.away_score is not None
        )


class Prediction(Record):
    id: str
    user_id: str
    match_id: str
    predicted_home_score: int = Field(ge=0)
    predicted_away_score: int = Field(ge=0)
    points_earned: Optional[int] = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TournamentRanking(Record):
    tournament_id: str
    user_id: str
    screen_name: Optional[str] = None
    avatar_url: Optional[str] = None
    predictions_count: int = 0
    total_points: int = 0
    rank: int
