"""Decoded MIDI event variants.

Every variant is a small dataclass with a class-level ``kind`` tag and a
mutable ``time`` field.  ``time`` is absolute seconds from the start of the
file after a full decode, and a fraction of the window in [0, 1] for events
fired by :meth:`MidiParser.advance`.

``Event`` is the closed union of all variants; callers dispatch on
``event.kind``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, ClassVar, Dict, Optional, Union


class EventKind(Enum):
    NOTE_OFF = "note_off"
    NOTE_ON = "note_on"
    POLYPHONIC_PRESSURE = "polyphonic_pressure"
    CONTROL_CHANGE = "control_change"
    CHANNEL_MODE = "channel_mode"
    PROGRAM_CHANGE = "program_change"
    CHANNEL_PRESSURE = "channel_pressure"
    PITCH_WHEEL = "pitch_wheel"
    TUNE_REQUEST = "tune_request"
    TIMING_CLOCK = "timing_clock"
    START = "start"
    CONTINUE = "continue"
    STOP = "stop"
    ACTIVE_SENSING = "active_sensing"
    SYSTEM_NO_OP = "system_no_op"
    SYSEX = "sysex"
    SEQUENCE_NUMBER = "sequence_number"
    TEXT = "text"
    CHANNEL_PREFIX = "channel_prefix"
    MIDI_PORT = "midi_port"
    END_OF_TRACK = "end_of_track"
    SET_TEMPO = "set_tempo"
    SMPTE_OFFSET = "smpte_offset"
    TIME_SIGNATURE = "time_signature"
    KEY_SIGNATURE = "key_signature"


class ChannelModeKind(IntEnum):
    """Control change numbers 120-127 are channel mode messages."""

    ALL_SOUND_OFF = 120
    RESET_ALL_CONTROLLERS = 121
    LOCAL_CONTROL = 122
    ALL_NOTES_OFF = 123
    OMNI_OFF = 124
    OMNI_ON = 125
    MONO_ON = 126
    POLY_ON = 127


class TextType(IntEnum):
    TEXT = 0x01
    COPYRIGHT = 0x02
    TRACK_NAME = 0x03
    INSTRUMENT_NAME = 0x04
    LYRIC = 0x05
    MARKER = 0x06
    CUE_POINT = 0x07
    SEQUENCER_SPECIFIC = 0x7F


def _export(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    return value


class _Serializable:
    kind: ClassVar[EventKind]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"time": self.time, "kind": self.kind.name}  # type: ignore[attr-defined]
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            if f.name != "time":
                out[f.name] = _export(getattr(self, f.name))
        return out


# ── Channel voice ──────────────────────────────────────────────────


@dataclass
class NoteOff(_Serializable):
    channel: int
    key: int
    velocity: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.NOTE_OFF


@dataclass
class NoteOn(_Serializable):
    channel: int
    key: int
    velocity: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.NOTE_ON


@dataclass
class PolyphonicPressure(_Serializable):
    channel: int
    key: int
    value: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.POLYPHONIC_PRESSURE


@dataclass
class ControlChange(_Serializable):
    channel: int
    controller: int
    value: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.CONTROL_CHANGE


@dataclass
class ChannelMode(_Serializable):
    channel: int
    mode: ChannelModeKind
    value: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.CHANNEL_MODE


@dataclass
class ProgramChange(_Serializable):
    channel: int
    program: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.PROGRAM_CHANGE


@dataclass
class ChannelPressure(_Serializable):
    channel: int
    value: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.CHANNEL_PRESSURE


@dataclass
class PitchWheel(_Serializable):
    channel: int
    value: int  # 14-bit, 0x2000 is centre
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.PITCH_WHEEL


# ── System common / real-time ──────────────────────────────────────


@dataclass
class TuneRequest(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.TUNE_REQUEST


@dataclass
class TimingClock(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.TIMING_CLOCK


@dataclass
class Start(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.START


@dataclass
class Continue(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.CONTINUE


@dataclass
class Stop(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.STOP


@dataclass
class ActiveSensing(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.ACTIVE_SENSING


@dataclass
class SystemNoOp(_Serializable):
    """A system byte with no playback effect (undefined, song position, song select)."""

    status: int
    value: Optional[int] = None
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.SYSTEM_NO_OP


@dataclass
class Sysex(_Serializable):
    status: int  # 0xF0 or 0xF7
    data: bytes
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.SYSEX


# ── Meta ───────────────────────────────────────────────────────────


@dataclass
class SequenceNumber(_Serializable):
    number: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.SEQUENCE_NUMBER


@dataclass
class Text(_Serializable):
    text_type: TextType
    data: bytes
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.TEXT

    @property
    def text(self) -> str:
        return self.data.decode("latin-1")


@dataclass
class ChannelPrefix(_Serializable):
    channel: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.CHANNEL_PREFIX


@dataclass
class MidiPort(_Serializable):
    """Deprecated meta 0x21 port assignment."""

    port: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.MIDI_PORT


@dataclass
class EndOfTrack(_Serializable):
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.END_OF_TRACK


@dataclass
class SetTempo(_Serializable):
    microseconds_per_quarter: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.SET_TEMPO


@dataclass
class SmpteOffset(_Serializable):
    hour: int
    minute: int
    second: int
    frame: int
    subframe: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.SMPTE_OFFSET


@dataclass
class TimeSignature(_Serializable):
    numerator: int
    denominator_exponent: int  # denominator = 2 ** exponent
    clocks_per_click: int
    notated_32nds_per_quarter: int
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.TIME_SIGNATURE

    @property
    def denominator(self) -> int:
        return 2 ** self.denominator_exponent


@dataclass
class KeySignature(_Serializable):
    sharps_flats: int  # negative = flats
    minor: bool
    time: float = 0.0
    kind: ClassVar[EventKind] = EventKind.KEY_SIGNATURE


Event = Union[
    NoteOff,
    NoteOn,
    PolyphonicPressure,
    ControlChange,
    ChannelMode,
    ProgramChange,
    ChannelPressure,
    PitchWheel,
    TuneRequest,
    TimingClock,
    Start,
    Continue,
    Stop,
    ActiveSensing,
    SystemNoOp,
    Sysex,
    SequenceNumber,
    Text,
    ChannelPrefix,
    MidiPort,
    EndOfTrack,
    SetTempo,
    SmpteOffset,
    TimeSignature,
    KeySignature,
]

CHANNEL_EVENT_KINDS = frozenset(
    {
        EventKind.NOTE_OFF,
        EventKind.NOTE_ON,
        EventKind.POLYPHONIC_PRESSURE,
        EventKind.CONTROL_CHANGE,
        EventKind.CHANNEL_MODE,
        EventKind.PROGRAM_CHANGE,
        EventKind.CHANNEL_PRESSURE,
        EventKind.PITCH_WHEEL,
    }
)
