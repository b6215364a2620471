"""Simulated player for tests and demos."""

from __future__ import annotations

from dataclasses import dataclass, field

from syncwatch.player.base import MediaPlayer


@dataclass
class PlayerCall:
    """Record of a command sent to the player."""

    method: str
    args: dict[str, float] = field(default_factory=dict)


class SimulatedPlayer(MediaPlayer):
    """A player whose clock only moves when told to.

    Commands take effect immediately and are recorded in ``calls``.
    ``advance()`` moves the position forward while playing and ``jump()``
    fakes a buffering glitch without recording a call.
    """

    def __init__(self, position: float = 0.0, *, duration: float | None = None) -> None:
        self._position = position
        self._paused = True
        self._duration = duration
        self.calls: list[PlayerCall] = []

    @property
    def current_time(self) -> float:
        return self._position

    @property
    def paused(self) -> bool:
        return self._paused

    def play(self) -> None:
        self.calls.append(PlayerCall(method="play"))
        self._paused = False

    def pause(self) -> None:
        self.calls.append(PlayerCall(method="pause"))
        self._paused = True

    def seek(self, position: float) -> None:
        self.calls.append(PlayerCall(method="seek", args={"position": position}))
        self._position = self._clamp(position)

    def advance(self, seconds: float) -> None:
        """Let *seconds* of wall time pass."""
        if not self._paused:
            self._position = self._clamp(self._position + seconds)

    def jump(self, position: float) -> None:
        """Move the position without it being a command (buffering glitch)."""
        self._position = self._clamp(position)

    def calls_to(self, method: str) -> list[PlayerCall]:
        return [c for c in self.calls if c.method == method]

    def _clamp(self, position: float) -> float:
        position = max(0.0, position)
        if self._duration is not None:
            position = min(position, self._duration)
        return position
