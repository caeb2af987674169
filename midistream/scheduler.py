"""Windowed real-time scheduling across tracks.

Each call to :meth:`WindowScheduler.advance` adds the window to every
active track's virtual clock, then fires that track's events while the
clock covers the next delta-time.  Tracks are processed one after another
in declared order; their output is not merged chronologically.

A fired event's ``time`` is ``(clock - threshold) / window`` clamped to
[0, 1], where ``clock`` is the track clock before the event and
``threshold`` its delta in seconds.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

from .decoder import EventDecoder, TrackCursor
from .errors import ExhaustedTracks, InvalidSeekTarget, MidiDecodeError
from .events import Event

logger = logging.getLogger(__name__)


class WindowScheduler:
    def __init__(
        self,
        decoder: EventDecoder,
        tracks: Sequence[TrackCursor],
        *,
        reuse_buffers: bool = False,
    ) -> None:
        self.decoder = decoder
        self.tracks = tracks
        self.reuse_buffers = reuse_buffers
        self._scratch: Dict[int, List[Event]] = {}

    @property
    def exhausted(self) -> bool:
        return all(track.ended for track in self.tracks)

    def _output(self) -> Dict[int, List[Event]]:
        if not self.reuse_buffers:
            return {}
        for events in self._scratch.values():
            events.clear()
        return self._scratch

    def advance(self, window: float, *, materialize: bool = True) -> Dict[int, List[Event]]:
        """Fire every event that falls within the next ``window`` seconds.

        Returns a mapping of track index to the events it fired, with one
        entry per track that was still active.  With ``materialize=False``
        the decode state moves forward but nothing is recorded and
        exhaustion is not an error.

        A decode error on one track ends that track (the error is kept on
        its cursor) without disturbing the others.  Once every track has had
        its window the first such error is raised, with the events fired
        during this call attached as ``partial``.
        """
        if math.isnan(window) or window < 0:
            raise InvalidSeekTarget(f"window must be a non-negative number, got {window}")
        if materialize and self.exhausted:
            raise ExhaustedTracks("all tracks have reached end-of-track")

        output = self._output() if materialize else {}
        failures: List[MidiDecodeError] = []
        for track in self.tracks:
            if track.ended:
                if materialize and self.reuse_buffers:
                    output.pop(track.index, None)
                continue
            fired = output.setdefault(track.index, []) if materialize else None
            try:
                self._run_track(track, window, fired)
            except MidiDecodeError as exc:
                logger.warning("track %d stopped: %s", track.index, exc)
                track.error = exc
                track.ended = True
                failures.append(exc)

        if failures:
            failures[0].partial = output
            raise failures[0]
        return output

    def _run_track(self, track: TrackCursor, window: float, fired: List[Event] | None) -> None:
        decoder = self.decoder
        tempo = decoder.tempo
        track.clock += window

        while True:
            if track.at_chunk_end:
                logger.warning("track %d ran out of data without end-of-track", track.index)
                track.ended = True
                return

            threshold = tempo.ticks_to_seconds(decoder.peek_delta(track))
            if track.clock < threshold:
                return

            event = decoder.decode(track)
            if fired is not None:
                if window > 0:
                    event.time = min(1.0, max(0.0, (track.clock - threshold) / window))
                else:
                    event.time = 0.0
                fired.append(event)

            if track.ended:
                logger.debug("track %d reached end-of-track", track.index)
                return
            track.clock -= threshold
