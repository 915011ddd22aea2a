from signups.models.game import GameRecord

__all__ = ["GameRecord"]
