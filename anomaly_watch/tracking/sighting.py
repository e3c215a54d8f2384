"""Immutable first-seen snapshots of other players."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.host import HostLocation, HostPlayer


@dataclass(frozen=True, slots=True)
class WorldPoint:
    """Tile coordinate in the game world."""

    x: int
    y: int
    plane: int = 0

    @classmethod
    def from_host(cls, location: HostLocation | None) -> "WorldPoint | None":
        if location is None:
            return None
        return cls(int(location.x), int(location.y), int(getattr(location, "plane", 0)))

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "plane": self.plane}


@dataclass(frozen=True, slots=True)
class Sighting:
    """Observable state of a player captured the first time it was seen."""

    name: str
    location: Optional[WorldPoint]
    animation: int
    interacting: Optional[str]
    combat_level: int
    equipment: Optional[Tuple[int, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation used in submission payloads."""

        return {
            "name": self.name,
            "location": self.location.to_dict() if self.location else None,
            "animation": self.animation,
            "interacting": self.interacting,
            "combatLevel": self.combat_level,
            "equipment": list(self.equipment) if self.equipment is not None else None,
        }


def sighting_from_player(player: HostPlayer) -> Sighting:
    """Capture ``player`` as a :class:`Sighting`."""

    if player.name is None:
        raise ValueError("cannot record a sighting for an unnamed player")
    equipment = player.equipment_ids
    return Sighting(
        name=player.name,
        location=WorldPoint.from_host(player.world_location),
        animation=int(player.animation),
        interacting=player.interacting,
        combat_level=int(player.combat_level),
        equipment=tuple(equipment) if equipment is not None else None,
    )


__all__ = ["WorldPoint", "Sighting", "sighting_from_player"]
