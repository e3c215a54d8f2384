"""Labels for drawing cached anomaly scores next to visible players."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from ..config import TrackingConfig
from ..core.host import HostClient, other_players

# Basic ANSI colour codes used by :func:`format_labels`
_COLOURS = {
    "red": "\x1b[31m",
    "orange": "\x1b[38;5;208m",
    "yellow": "\x1b[33m",
    "green": "\x1b[32m",
    "reset": "\x1b[0m",
}


def score_colour(score: float) -> str:
    """Return the display colour for ``score``."""

    if score >= 0.8:
        return "red"
    if score >= 0.6:
        return "orange"
    if score >= 0.4:
        return "yellow"
    return "green"


@dataclass(frozen=True, slots=True)
class ScoreLabel:
    name: str
    text: str
    colour: str


class ScoreOverlay:
    """Build one label per visible player that has a live cached score."""

    def __init__(self, scores: Callable[[], Dict[str, float]], config: TrackingConfig) -> None:
        self._scores = scores
        self.config = config

    def render(self, host: HostClient) -> List[ScoreLabel]:
        if not self.config.show_overlay:
            return []

        scores = self._scores()
        if not scores:
            return []

        labels: List[ScoreLabel] = []
        for player in other_players(host):
            score = scores.get(player.name)
            if score is None:
                continue
            labels.append(ScoreLabel(player.name, f"{score:.2f}", score_colour(score)))
        return labels


def format_labels(labels: Sequence[ScoreLabel], colour: bool = True) -> str:
    """Render ``labels`` on a single terminal line."""

    parts = []
    for label in labels:
        if colour:
            parts.append(f"{label.name}={_COLOURS[label.colour]}{label.text}{_COLOURS['reset']}")
        else:
            parts.append(f"{label.name}={label.text}")
    return " ".join(parts)


__all__ = ["ScoreOverlay", "ScoreLabel", "score_colour", "format_labels"]
