"""
Pydantic schemas for game-related request/response validation.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from signups.domain.game import Game


class GameCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=255)
    start_time: datetime
    duration_mins: int = Field(..., gt=0, le=24 * 60)
    num_teams: int = Field(..., gt=0, le=64)
    team_size: int = Field(..., gt=0, le=100)
    sign_up_fee_cents: int = Field(0, ge=0)
    split_fee_cents: int = Field(0, ge=0)

    @field_validator("name", "category", "location")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("start_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class GameResponse(BaseModel):
    id: str
    owner: str
    name: str
    category: str
    location: str
    start_time: datetime
    duration_mins: int
    num_teams: int
    team_size: int
    capacity: int
    sign_up_fee_cents: int
    split_fee_cents: int
    roster: list[str]
    waitlist: list[str]
    version: int

    @classmethod
    def from_game(cls, game: Game) -> "GameResponse":
        return cls(
            id=game.id,
            owner=game.owner,
            name=game.name,
            category=game.category,
            location=game.location,
            start_time=datetime.fromtimestamp(game.start_time, tz=timezone.utc),
            duration_mins=game.duration_mins,
            num_teams=game.num_teams,
            team_size=game.team_size,
            capacity=game.capacity,
            sign_up_fee_cents=game.sign_up_fee_cents,
            split_fee_cents=game.split_fee_cents,
            roster=list(game.roster),
            waitlist=list(game.waitlist),
            version=game.version,
        )


class GameListResponse(BaseModel):
    games: list[GameResponse]
    category: str
    max_results: int
    cached: bool = False
