"""Parser session: construction, full decode, real-time playback and seeking."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Union

from .chunks import build_track_index
from .decoder import EventDecoder, TrackCursor, decode_tracks
from .errors import InvalidSeekTarget, MidiDecodeError
from .events import Event
from .options import ParserOptions
from .reader import ByteReader
from .scheduler import WindowScheduler
from .tempo import TempoMap

logger = logging.getLogger(__name__)


class MidiParser:
    """Decode one in-memory Standard MIDI File.

    All mutable state (cursor, running status, tempo, track clocks) lives
    on the instance.  Not thread-safe.
    """

    def __init__(self, data: bytes, options: Optional[ParserOptions] = None) -> None:
        self.options = options or ParserOptions()
        self._reader = ByteReader(data)
        self.header, self.chunks = build_track_index(self._reader.data)

        self.tempo = TempoMap(self.header.division)
        self._decoder = EventDecoder(self._reader, self.tempo)
        self.tracks: List[TrackCursor] = [TrackCursor.from_chunk(c) for c in self.chunks]
        self._scheduler = WindowScheduler(
            self._decoder, self.tracks, reuse_buffers=self.options.reuse_buffers
        )
        self._position = 0.0

    @classmethod
    def from_file(
        cls, path: Union[str, Path], options: Optional[ParserOptions] = None
    ) -> "MidiParser":
        return cls(Path(path).read_bytes(), options)

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def position(self) -> float:
        """Absolute playback clock in seconds."""
        return self._position

    @property
    def exhausted(self) -> bool:
        return self._scheduler.exhausted

    def decode_all(self) -> List[List[Event]]:
        """Decode every track in one pass; ``time`` is seconds from file start.

        Playback state (track cursors, clocks, tempo) is not affected.
        """
        return decode_tracks(self._reader, self.header, self.chunks)

    def advance(self, window_seconds: float) -> Dict[int, List[Event]]:
        """Fire the events of the next ``window_seconds`` on every active track.

        Raises :class:`~midistream.errors.ExhaustedTracks` once every track
        has ended.  Event ``time`` values are window fractions in [0, 1].
        A track that fails to decode is ended and its error re-raised after
        the other tracks have played the window; see
        :meth:`WindowScheduler.advance <midistream.scheduler.WindowScheduler.advance>`.
        See :class:`~midistream.options.ParserOptions` for buffer lifetime.
        """
        try:
            fired = self._scheduler.advance(window_seconds)
        except MidiDecodeError:
            # the healthy tracks consumed the window
            self._position += window_seconds
            raise
        self._position += window_seconds
        return fired

    def seek(self, target_seconds: float) -> None:
        if math.isnan(target_seconds) or target_seconds < 0:
            raise InvalidSeekTarget(f"cannot seek to {target_seconds}")

        for track in self.tracks:
            track.reset()
        self.tempo.reset()
        self._reader.position = 0
        self._position = 0.0

        if target_seconds > 0:
            self._position = target_seconds
            self._scheduler.advance(target_seconds, materialize=False)
        logger.debug("seek to %.6fs", target_seconds)

    def fast_forward(self, delta_seconds: float) -> None:
        self.seek(self._position + delta_seconds)

    def rewind(self, delta_seconds: float) -> None:
        target = self._position - delta_seconds
        if target < 0 and self.options.clamp_rewind:
            target = 0.0
        self.seek(target)

    def __repr__(self) -> str:
        return (
            f"MidiParser(format={self.header.format}, tracks={self.track_count}, "
            f"position={self._position:.3f})"
        )
