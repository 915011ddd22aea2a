from signups.schemas.game import GameCreate, GameResponse, GameListResponse

__all__ = [
    "GameCreate", "GameResponse", "GameListResponse",
]
