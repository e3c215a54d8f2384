"""In-process stand-in for a game client, used by the command-line demo."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.game_state import GameState

_ANIMATIONS = (-1, 808, 829, 875, 879, 1156)


@dataclass
class SimulatedLocation:
    x: int
    y: int
    plane: int = 0


@dataclass
class SimulatedPlayer:
    name: Optional[str]
    world_location: SimulatedLocation
    animation: int = -1
    interacting: Optional[str] = None
    combat_level: int = 3
    equipment_ids: Optional[Tuple[int, ...]] = None


@dataclass
class SimulatedHost:
    """Random players wandering around the local player.

    ``step`` moves everyone by at most one tile and occasionally lets a player
    arrive or leave, so the tracker sees a steady trickle of new names.
    """

    world: int = 301
    seed: int | None = None
    arrival_chance: float = 0.2
    departure_chance: float = 0.05
    game_state: GameState = GameState.LOGIN_SCREEN
    local_player: SimulatedPlayer = field(
        default_factory=lambda: SimulatedPlayer("Observer", SimulatedLocation(3222, 3218), combat_level=70)
    )
    _players: Dict[str, SimulatedPlayer] = field(default_factory=dict)
    _next_id: int = 0

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)

    # ------------------------------------------------------------------
    # Host accessors
    # ------------------------------------------------------------------
    def visible_players(self) -> List[SimulatedPlayer]:
        return [self.local_player, *self._players.values()]

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------
    def log_in(self) -> GameState:
        self.game_state = GameState.LOGGED_IN
        return self.game_state

    def log_out(self) -> GameState:
        self.game_state = GameState.LOGIN_SCREEN
        self._players.clear()
        return self.game_state

    def spawn_player(self) -> SimulatedPlayer:
        self._next_id += 1
        origin = self.local_player.world_location
        player = SimulatedPlayer(
            name=f"Player{self._next_id}",
            world_location=SimulatedLocation(
                origin.x + self._rng.randint(-10, 10), origin.y + self._rng.randint(-10, 10)
            ),
            animation=self._rng.choice(_ANIMATIONS),
            combat_level=self._rng.randint(3, 126),
            equipment_ids=tuple(self._rng.randint(0, 30000) for _ in range(12)),
        )
        self._players[player.name] = player
        return player

    def add_player(self, name: str, x: int | None = None, y: int | None = None, **attrs) -> SimulatedPlayer:
        origin = self.local_player.world_location
        player = SimulatedPlayer(
            name=name,
            world_location=SimulatedLocation(origin.x if x is None else x, origin.y if y is None else y),
            **attrs,
        )
        self._players[name] = player
        return player

    def remove_player(self, name: str) -> None:
        self._players.pop(name, None)

    def step(self) -> None:
        if self.game_state is not GameState.LOGGED_IN:
            return
        if self._rng.random() < self.arrival_chance:
            self.spawn_player()
        if self._players and self._rng.random() < self.departure_chance:
            del self._players[self._rng.choice(list(self._players))]
        for player in self._players.values():
            loc = player.world_location
            loc.x += self._rng.randint(-1, 1)
            loc.y += self._rng.randint(-1, 1)
            player.animation = self._rng.choice(_ANIMATIONS)


__all__ = ["SimulatedHost", "SimulatedPlayer", "SimulatedLocation"]
