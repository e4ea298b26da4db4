# hitmaker/errors.py
from __future__ import annotations

from typing import List, Optional


class HitmakerError(Exception):
    """Base class for engine errors."""
    pass


class ValidationError(HitmakerError):
    """An action was rejected before any state was touched."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors) if errors else [message]
        super().__init__(message)


class ComputationError(HitmakerError):
    """A formula produced a non-finite or out-of-range value.

    Formulas log this and fall back to a safe value; it never leaves a turn.
    """
    pass


class MissingTargetError(HitmakerError):
    """An effect targets an artist who is no longer on the roster."""

    def __init__(self, artist_id: str):
        self.artist_id = artist_id
        super().__init__(f"Artist {artist_id} is not signed to the label")


class PersistenceError(HitmakerError):
    """Loading or saving a game failed; the turn was rolled back."""
    pass


class GameNotFoundError(HitmakerError):
    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class CampaignCompletedError(HitmakerError):
    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(
            f"Campaign for game {game_id} has already been completed. "
            "Start a new game to continue playing."
        )


class InvalidTransitionError(HitmakerError):
    """A project was asked to move to a stage it cannot reach from its current one."""

    def __init__(self, project_id: str, current: str, attempted: str):
        self.project_id = project_id
        self.current = current
        self.attempted = attempted
        super().__init__(f"Project {project_id} cannot move from {current} to {attempted}")
