# hitmaker/service.py
from __future__ import annotations

import logging
import random
import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence

from hitmaker.balance import BalanceConfig, get_balance
from hitmaker.models import Action, Archetype, Artist, LabelState, SignArtistAction
from hitmaker.quality import clamp
from hitmaker.simulation import TurnOutcome, advance_month, new_game
from hitmaker.store import GameStore, MemoryGameStore

logger = logging.getLogger(__name__)


class GameService:
    """
    Load -> advance -> save, one turn at a time per game.

    Turns for the same game are serialized by a per-game lock; different
    games never wait on each other. A lock lives only while some turn holds
    or waits on it.
    """

    def __init__(self, store: Optional[GameStore] = None, balance: Optional[BalanceConfig] = None):
        self.store = store if store is not None else MemoryGameStore()
        self.balance = balance or get_balance()
        # game_id -> [lock, number of turns holding or waiting]
        self._locks: Dict[str, List] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _lock(self, game_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(game_id)
            if entry is None:
                entry = self._locks[game_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[game_id]

    def create_game(
        self,
        *,
        seed: Optional[int] = None,
        allow_negative_money: bool = False,
        artists: Sequence[SignArtistAction] = (),
    ) -> LabelState:
        game_id = uuid.uuid4().hex[:12]
        if seed is None:
            seed = random.randrange(1_000_000_000)
        state = new_game(game_id, seed, allow_negative_money=allow_negative_money, balance=self.balance)

        # starting roster joins for free
        for a in artists:
            artist_id = state.game.next_id("artist")
            state.artists[artist_id] = Artist(
                id=artist_id,
                name=a.name,
                archetype=Archetype(a.archetype),
                mood=clamp(a.mood, 0.0, 100.0),
                loyalty=clamp(a.loyalty, 0.0, 100.0),
                popularity=clamp(a.popularity, 0.0, 100.0),
                signing_cost=0,
                monthly_cost=a.monthly_cost,
            )

        self.store.save(game_id, state)
        logger.info("Created game %s (seed %d, %d artists)", game_id, seed, len(state.artists))
        return state

    def get_game(self, game_id: str) -> LabelState:
        return self.store.load(game_id)

    def advance(self, game_id: str, actions: Sequence[Action] = ()) -> TurnOutcome:
        """
        Run one month for `game_id` and persist it.

        If the save fails the stored game is left as it was and the
        PersistenceError propagates.
        """
        with self._lock(game_id):
            state = self.store.load(game_id)
            outcome = advance_month(state, actions, balance=self.balance)
            self.store.save(game_id, outcome.state)
            return outcome
