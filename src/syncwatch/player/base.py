"""Interface to the local media element the engine drives."""

from __future__ import annotations

from abc import ABC, abstractmethod


class MediaPlayer(ABC):
    """What the reconciliation engine needs from a local player.

    All commands are requests: a real player may apply them later and
    report the outcome through the engine's ``on_time_update`` and
    ``on_media_state`` callbacks. None of them may block.
    """

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Observed playback position in seconds."""
        ...

    @property
    @abstractmethod
    def paused(self) -> bool:
        """True when the media is not currently advancing."""
        ...

    @abstractmethod
    def play(self) -> None:
        """Request playback to resume."""
        ...

    @abstractmethod
    def pause(self) -> None:
        """Request playback to pause."""
        ...

    @abstractmethod
    def seek(self, position: float) -> None:
        """Request a jump to *position* seconds."""
        ...
