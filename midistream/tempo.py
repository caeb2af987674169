from __future__ import annotations

import math

from .chunks import Division

DEFAULT_TEMPO = 500_000  # microseconds per quarter note (120 BPM)


class TempoMap:
    """Tick-to-second conversion shared by every track of one parser.

    In ticks-per-quarter mode the tick length follows the most recent
    set-tempo event.  In SMPTE mode a tick is one subframe, fixed by the
    header; tempo events are recorded but do not change conversions.
    """

    def __init__(self, division: Division, tempo: int = DEFAULT_TEMPO) -> None:
        self.division = division
        self.microseconds_per_quarter = tempo
        self.microseconds_per_tick = 0.0
        self.set_tempo(tempo)

    def set_tempo(self, microseconds_per_quarter: int) -> None:
        self.microseconds_per_quarter = microseconds_per_quarter
        division = self.division
        if division.is_smpte:
            self.microseconds_per_tick = 1_000_000 / (
                division.frames_per_second * division.subframes
            )
        else:
            self.microseconds_per_tick = (
                microseconds_per_quarter / division.ticks_per_quarter
            )

    def reset(self) -> None:
        self.set_tempo(DEFAULT_TEMPO)

    @property
    def bpm(self) -> float:
        if not self.microseconds_per_quarter:
            return math.inf
        return 60_000_000 / self.microseconds_per_quarter

    def ticks_to_seconds(self, ticks: int) -> float:
        return ticks * self.microseconds_per_tick / 1_000_000
