"""Event decoding state machine and the one-shot full-file decode.

Each call to :meth:`EventDecoder.decode` consumes exactly one timed event
from a track: a delta-time VLQ followed by its payload.

  0x80-0xEF  channel voice; updates the track's running status
  0x00-0x7F  data byte: reuse the running status, byte is the first operand
  0xF0/0xF7  sysex, payload runs to the next 0xF7 inside the chunk
  0xF1-0xFE  system common / real-time (never touches running status)
  0xFF       meta event: type byte, VLQ length, payload

On any decode error the track's cursor is left where the event started.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .chunks import MidiHeader, TrackChunk
from .errors import MidiDecodeError, MissingRunningStatus, MissingSysexTerminator, UnknownMetaEvent
from .events import (
    ActiveSensing,
    ChannelMode,
    ChannelModeKind,
    ChannelPrefix,
    ChannelPressure,
    Continue,
    ControlChange,
    EndOfTrack,
    Event,
    KeySignature,
    MidiPort,
    NoteOff,
    NoteOn,
    PitchWheel,
    PolyphonicPressure,
    ProgramChange,
    SequenceNumber,
    SetTempo,
    SmpteOffset,
    Start,
    Stop,
    Sysex,
    SystemNoOp,
    Text,
    TextType,
    TimeSignature,
    TimingClock,
    TuneRequest,
)
from .reader import ByteReader
from .tempo import TempoMap

logger = logging.getLogger(__name__)

META_SEQUENCE_NUMBER = 0x00
META_CHANNEL_PREFIX = 0x20
META_MIDI_PORT = 0x21
META_END_OF_TRACK = 0x2F
META_SET_TEMPO = 0x51
META_SMPTE_OFFSET = 0x54
META_TIME_SIGNATURE = 0x58
META_KEY_SIGNATURE = 0x59

FIXED_META_LENGTHS = {
    META_SEQUENCE_NUMBER: 2,
    META_CHANNEL_PREFIX: 1,
    META_MIDI_PORT: 1,
    META_END_OF_TRACK: 0,
    META_SET_TEMPO: 3,
    META_SMPTE_OFFSET: 5,
    META_TIME_SIGNATURE: 4,
    META_KEY_SIGNATURE: 2,
}
TEXT_META_TYPES = frozenset(int(t) for t in TextType)

UNDEFINED_SYSTEM_BYTES = frozenset({0xF1, 0xF4, 0xF5, 0xF9, 0xFD})
REALTIME_EVENTS = {
    0xF6: TuneRequest,
    0xF8: TimingClock,
    0xFA: Start,
    0xFB: Continue,
    0xFC: Stop,
    0xFE: ActiveSensing,
}


@dataclass
class TrackCursor:
    """Mutable decode position for one track chunk."""

    index: int
    start: int  # initial offset, restored on reset
    end: int
    cursor: int = 0
    running_status: Optional[int] = None
    clock: float = 0.0  # real-time mode: seconds not yet consumed
    ended: bool = False
    error: Optional[MidiDecodeError] = None  # set when playback stopped on a decode error

    def __post_init__(self) -> None:
        self.cursor = self.start

    @classmethod
    def from_chunk(cls, chunk: TrackChunk) -> "TrackCursor":
        return cls(index=chunk.index, start=chunk.start, end=chunk.end)

    @property
    def at_chunk_end(self) -> bool:
        return self.cursor >= self.end

    def reset(self) -> None:
        self.cursor = self.start
        self.running_status = None
        self.clock = 0.0
        self.ended = False
        self.error = None


class EventDecoder:
    """Decodes events from track cursors over one shared buffer."""

    def __init__(self, reader: ByteReader, tempo: TempoMap) -> None:
        self.reader = reader
        self.tempo = tempo

    def peek_delta(self, track: TrackCursor) -> int:
        """Return the next event's delta-time without consuming it."""
        reader = self.reader
        reader.position = track.cursor
        reader.limit = track.end
        try:
            return reader.peek_vlq()
        except MidiDecodeError as exc:
            exc.track = track.index
            raise
        finally:
            reader.reset_limit()

    def decode(self, track: TrackCursor) -> Event:
        reader = self.reader
        reader.position = track.cursor
        reader.limit = track.end
        try:
            reader.read_vlq()
            event = self._decode_payload(track)
        except MidiDecodeError as exc:
            exc.track = track.index
            raise
        finally:
            reader.reset_limit()

        track.cursor = reader.position
        if isinstance(event, EndOfTrack):
            track.ended = True
        return event

    # ── payload dispatch ──────────────────────────────────────────

    def _decode_payload(self, track: TrackCursor) -> Event:
        reader = self.reader
        first = reader.peek_uint(1)

        if first < 0x80:
            if track.running_status is None:
                raise MissingRunningStatus(
                    f"data byte 0x{first:02X} without running status",
                    offset=reader.position,
                )
            return self._channel_event(track.running_status)

        reader.position += 1
        if first < 0xF0:
            track.running_status = first
            return self._channel_event(first)
        return self._system_event(first, track)

    def _channel_event(self, status: int) -> Event:
        read = self.reader.read_u8
        channel = status & 0x0F
        kind = status & 0xF0

        if kind == 0x80:
            return NoteOff(channel=channel, key=read(), velocity=read())
        if kind == 0x90:
            return NoteOn(channel=channel, key=read(), velocity=read())
        if kind == 0xA0:
            return PolyphonicPressure(channel=channel, key=read(), value=read())
        if kind == 0xB0:
            controller = read()
            value = read()
            if controller >= ChannelModeKind.ALL_SOUND_OFF:
                return ChannelMode(channel=channel, mode=ChannelModeKind(controller), value=value)
            return ControlChange(channel=channel, controller=controller, value=value)
        if kind == 0xC0:
            return ProgramChange(channel=channel, program=read())
        if kind == 0xD0:
            return ChannelPressure(channel=channel, value=read())
        # 0xE0
        lsb = read()
        msb = read()
        return PitchWheel(channel=channel, value=(lsb & 0x7F) | ((msb & 0x7F) << 7))

    def _system_event(self, status: int, track: TrackCursor) -> Event:
        reader = self.reader

        if status == 0xFF:
            return self._meta_event()

        if status in (0xF0, 0xF7):
            terminator = reader.find(0xF7, track.end)
            if terminator == -1:
                raise MissingSysexTerminator(
                    f"sysex 0x{status:02X} has no 0xF7 before chunk end",
                    offset=reader.position - 1,
                )
            data = reader.read_bytes(terminator - reader.position)
            reader.position += 1
            return Sysex(status=status, data=data)

        if status in UNDEFINED_SYSTEM_BYTES:
            logger.debug("undefined system byte 0x%02X at 0x%X", status, reader.position - 1)
            return SystemNoOp(status=status)
        if status == 0xF2:
            lsb = reader.read_u8()
            msb = reader.read_u8()
            return SystemNoOp(status=status, value=(lsb & 0x7F) | ((msb & 0x7F) << 7))
        if status == 0xF3:
            return SystemNoOp(status=status, value=reader.read_u8())
        return REALTIME_EVENTS[status]()

    def _meta_event(self) -> Event:
        reader = self.reader
        start = reader.position - 1
        meta_type = reader.read_u8()
        length = reader.read_vlq()

        if meta_type in TEXT_META_TYPES:
            return Text(text_type=TextType(meta_type), data=reader.read_bytes(length))

        expected = FIXED_META_LENGTHS.get(meta_type)
        if expected is None:
            raise UnknownMetaEvent(f"unknown meta event type 0x{meta_type:02X}", offset=start)
        if length != expected:
            raise UnknownMetaEvent(
                f"meta event 0x{meta_type:02X} has length {length}, expected {expected}",
                offset=start,
            )

        if meta_type == META_SEQUENCE_NUMBER:
            return SequenceNumber(number=reader.read_uint(2))
        if meta_type == META_CHANNEL_PREFIX:
            return ChannelPrefix(channel=reader.read_u8())
        if meta_type == META_MIDI_PORT:
            return MidiPort(port=reader.read_u8())
        if meta_type == META_END_OF_TRACK:
            return EndOfTrack()
        if meta_type == META_SET_TEMPO:
            tempo = reader.read_uint(3)
            self.tempo.set_tempo(tempo)
            return SetTempo(microseconds_per_quarter=tempo)
        if meta_type == META_SMPTE_OFFSET:
            hour, minute, second, frame, subframe = reader.read_bytes(5)
            return SmpteOffset(
                hour=hour, minute=minute, second=second, frame=frame, subframe=subframe
            )
        if meta_type == META_TIME_SIGNATURE:
            numerator, exponent, clocks, thirty_seconds = reader.read_bytes(4)
            return TimeSignature(
                numerator=numerator,
                denominator_exponent=exponent,
                clocks_per_click=clocks,
                notated_32nds_per_quarter=thirty_seconds,
            )
        # META_KEY_SIGNATURE
        sharps_flats = int.from_bytes(reader.read_bytes(1), "big", signed=True)
        return KeySignature(sharps_flats=sharps_flats, minor=reader.read_u8() == 1)


def decode_tracks(
    reader: ByteReader, header: MidiHeader, chunks: Sequence[TrackChunk]
) -> List[List[Event]]:
    """Decode every event of every track with absolute times in seconds.

    Uses its own tempo map and running-status state.  Tracks are decoded in
    declared order and share the tempo map, so tempo changes carry over from
    one track into the next.  ``reader.position`` is reset to 0 afterwards.
    """
    tempo = TempoMap(header.division)
    decoder = EventDecoder(reader, tempo)
    result: List[List[Event]] = []

    try:
        for chunk in chunks:
            track = TrackCursor.from_chunk(chunk)
            events: List[Event] = []
            clock = 0.0
            while not track.ended and not track.at_chunk_end:
                clock += tempo.ticks_to_seconds(decoder.peek_delta(track))
                event = decoder.decode(track)
                event.time = clock
                events.append(event)
            result.append(events)
    finally:
        reader.position = 0

    return result
