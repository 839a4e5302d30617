"""Virtual timeline over an ordered playlist of clips.

All positions are kept in integer milliseconds so cumulative offsets never
drift; seconds are only produced at the edges (local offsets handed to the
camera).
"""

from __future__ import annotations

import bisect
from typing import Iterable, Iterator, Sequence

from .errors import InvalidInputError, OutOfRangeError
from .model import MILLISECONDS, Clip, TimelineEntry


class Timeline:
    """Answers "which clip, and where in it" for a global position."""

    def __init__(self, entries: Sequence[TimelineEntry]) -> None:
        if not entries:
            raise InvalidInputError("Timeline needs at least one clip")
        self._entries = tuple(entries)
        self._starts = [entry.offset_ms for entry in self._entries]
        self._total_ms = self._entries[-1].end_ms

    # ---------------------------------------------------------------- build
    @classmethod
    def build(cls, clips: Iterable[Clip]) -> "Timeline":
        entries: list[TimelineEntry] = []
        offset_ms = 0
        for index, clip in enumerate(clips):
            duration_ms = clip.duration_ms
            if clip.duration_secs <= 0 or duration_ms <= 0:
                raise InvalidInputError(
                    f"Clip {clip.clip_id!r} has non-positive duration {clip.duration_secs}"
                )
            entries.append(TimelineEntry(index, clip, offset_ms, duration_ms))
            offset_ms += duration_ms

        if not entries:
            raise InvalidInputError("Cannot build a timeline from an empty clip list")
        return cls(entries)

    # ----------------------------------------------------------- properties
    @property
    def entries(self) -> tuple[TimelineEntry, ...]:
        return self._entries

    @property
    def total_ms(self) -> int:
        return self._total_ms

    @property
    def last_index(self) -> int:
        return len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TimelineEntry]:
        return iter(self._entries)

    def entry(self, index: int) -> TimelineEntry:
        return self._entries[index]

    # --------------------------------------------------------------- lookup
    def is_end(self, global_ms: int) -> bool:
        return global_ms == self._total_ms

    def index_at(self, global_ms: int) -> int:
        if global_ms < 0 or global_ms > self._total_ms:
            raise OutOfRangeError(global_ms, self._total_ms)
        if global_ms == self._total_ms:
            return self.last_index
        return bisect.bisect_right(self._starts, global_ms) - 1

    def locate(self, global_ms: int) -> tuple[int, float]:
        """Return ``(entry index, local offset in seconds)``.

        The exact end of the timeline resolves to the last entry with its
        full duration as the local offset; that is a terminal boundary, not a
        playable position (see ``is_end``).
        """
        index = self.index_at(global_ms)
        entry = self._entries[index]
        return index, (global_ms - entry.offset_ms) / MILLISECONDS

    def id_and_offset(self, global_ms: int) -> tuple[str, float]:
        """Return ``(clip id, offset inside the recorded file in seconds)``."""
        index, local_secs = self.locate(global_ms)
        clip = self._entries[index].clip
        return clip.clip_id, local_secs + clip.start_offset_secs

    def __repr__(self) -> str:
        return f"Timeline(clips={len(self._entries)}, total_ms={self._total_ms})"


__all__ = ["Timeline"]
