from .room import Room, Player
from .prompt import Prompt
from .game import GameState, Response

__all__ = [
    "Room",
    "Player",
    "Prompt",
    "GameState",
    "Response",
]
