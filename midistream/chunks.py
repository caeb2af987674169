"""Header validation and track chunk discovery.

A Standard MIDI File is a sequence of chunks, each an ASCII id followed by
a 4-byte big-endian length and that many payload bytes:

  MThd <len=6> <format u16> <ntrks u16> <division u16>
  MTrk <len>   <events...>
  ...

Division, high bit clear: ticks per quarter note (must be nonzero).
Division, high bit set: the high byte is a negative SMPTE frame rate
(-24, -25, -29, -30; -29 is 29.97 drop-frame) and the low byte is the
number of subframes per frame.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import List, Tuple

from .errors import (
    InvalidDeltaTiming,
    InvalidFormat,
    InvalidHeaderLength,
    MissingHeader,
    NoTracks,
    TrackCountMismatch,
)

logger = logging.getLogger(__name__)

HEADER_ID = b"MThd"
TRACK_ID = b"MTrk"
HEADER_LENGTH = 6
CHUNK_PREFIX_SIZE = 8  # id + length
VALID_FORMATS = frozenset({0, 1, 2})
SMPTE_FRAME_RATES = {24: 24.0, 25: 25.0, 29: 29.97, 30: 30.0}


@dataclass(frozen=True)
class Division:
    """Delta-time resolution declared by the header."""

    raw: int
    ticks_per_quarter: int | None = None
    smpte_format: int | None = None  # 24, 25, 29 or 30
    subframes: int | None = None

    @property
    def is_smpte(self) -> bool:
        return self.smpte_format is not None

    @property
    def frames_per_second(self) -> float | None:
        if self.smpte_format is None:
            return None
        return SMPTE_FRAME_RATES[self.smpte_format]

    @classmethod
    def from_word(cls, word: int) -> "Division":
        if not word & 0x8000:
            if word == 0:
                raise InvalidDeltaTiming("ticks per quarter note must be nonzero")
            return cls(raw=word, ticks_per_quarter=word)

        smpte_format = 256 - (word >> 8)
        subframes = word & 0xFF
        if smpte_format not in SMPTE_FRAME_RATES:
            raise InvalidDeltaTiming(f"unsupported SMPTE frame rate code {smpte_format}")
        if subframes == 0:
            raise InvalidDeltaTiming("SMPTE subframe resolution must be nonzero")
        return cls(raw=word, smpte_format=smpte_format, subframes=subframes)


@dataclass(frozen=True)
class MidiHeader:
    format: int
    track_count: int
    division: Division
    end_offset: int  # first byte after the header chunk

    @classmethod
    def from_bytes(cls, data: bytes) -> "MidiHeader":
        start = data.find(HEADER_ID)
        if start == -1 or start + CHUNK_PREFIX_SIZE > len(data):
            raise MissingHeader("no MThd chunk found")

        length = int.from_bytes(data[start + 4 : start + 8], "big")
        if length != HEADER_LENGTH:
            raise InvalidHeaderLength(
                f"header chunk length is {length}, expected {HEADER_LENGTH}"
            )
        body_start = start + CHUNK_PREFIX_SIZE
        if body_start + HEADER_LENGTH > len(data):
            raise InvalidHeaderLength(
                f"file too short for header ({len(data)} bytes)"
            )

        fmt, track_count, division = struct.unpack_from(">HHH", data, body_start)
        if fmt not in VALID_FORMATS:
            raise InvalidFormat(f"unsupported format {fmt}")
        if track_count == 0:
            raise NoTracks("header declares zero tracks")

        return cls(
            format=fmt,
            track_count=track_count,
            division=Division.from_word(division),
            end_offset=body_start + HEADER_LENGTH,
        )


@dataclass(frozen=True)
class TrackChunk:
    """Location of one track's event bytes inside the source buffer."""

    index: int  # 0-based, declared order
    start: int  # first byte after the chunk length field
    length: int  # declared chunk length

    @property
    def end(self) -> int:
        return self.start + self.length


def find_track_chunks(data: bytes, header: MidiHeader) -> List[TrackChunk]:
    """Locate exactly ``header.track_count`` track chunks after the header."""
    chunks: List[TrackChunk] = []
    pos = header.end_offset
    data_len = len(data)

    while len(chunks) < header.track_count:
        idx = data.find(TRACK_ID, pos)
        if idx == -1 or idx + CHUNK_PREFIX_SIZE > data_len:
            break

        length = int.from_bytes(data[idx + 4 : idx + 8], "big")
        start = idx + CHUNK_PREFIX_SIZE
        if start + length > data_len:
            logger.warning(
                "track %d declares %d bytes but only %d remain; truncating",
                len(chunks),
                length,
                data_len - start,
            )
            length = data_len - start

        chunks.append(TrackChunk(index=len(chunks), start=start, length=length))
        pos = start + length

    if len(chunks) != header.track_count:
        raise TrackCountMismatch(header.track_count, len(chunks))
    return chunks


def build_track_index(data: bytes) -> Tuple[MidiHeader, List[TrackChunk]]:
    header = MidiHeader.from_bytes(data)
    chunks = find_track_chunks(data, header)
    logger.debug(
        "format %d, %d track(s), division 0x%04X",
        header.format,
        header.track_count,
        header.division.raw,
    )
    return header, chunks
