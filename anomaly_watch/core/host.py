"""Protocols describing what the tracker consumes from the host session."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .game_state import GameState


class HostLocation(Protocol):
    x: int
    y: int
    plane: int


class HostPlayer(Protocol):
    """A player as exposed by the host client."""

    name: Optional[str]
    world_location: HostLocation
    animation: int
    interacting: Optional[str]
    combat_level: int
    equipment_ids: Optional[Sequence[int]]


class HostClient(Protocol):
    """Live game-session accessors used by the tick driver and overlay."""

    game_state: GameState
    world: int
    local_player: Optional[HostPlayer]

    def visible_players(self) -> Iterable[Optional[HostPlayer]]:
        ...


def other_players(host: HostClient) -> Iterable[HostPlayer]:
    """Yield visible players, skipping unnamed entries and the local player."""

    local = host.local_player
    for player in host.visible_players():
        if player is None or player.name is None or player is local:
            continue
        yield player


__all__ = ["HostClient", "HostPlayer", "HostLocation", "other_players"]
