"""Decode Standard MIDI Files into timed event sequences."""

from .chunks import (  # noqa: F401
    Division,
    MidiHeader,
    TrackChunk,
    build_track_index,
)
from .decoder import EventDecoder, TrackCursor, decode_tracks  # noqa: F401
from .errors import (  # noqa: F401
    ExhaustedTracks,
    InvalidDeltaTiming,
    InvalidFormat,
    InvalidHeaderLength,
    InvalidSeekTarget,
    InvalidVLQ,
    MidiDecodeError,
    MidiError,
    MidiStructureError,
    MissingHeader,
    MissingRunningStatus,
    MissingSysexTerminator,
    NoTracks,
    TrackCountMismatch,
    TruncatedInput,
    UnknownMetaEvent,
)
from .events import (  # noqa: F401
    ActiveSensing,
    ChannelMode,
    ChannelModeKind,
    ChannelPrefix,
    ChannelPressure,
    Continue,
    ControlChange,
    EndOfTrack,
    Event,
    EventKind,
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
from .options import ParserOptions  # noqa: F401
from .parser import MidiParser  # noqa: F401
from .reader import ByteReader  # noqa: F401
from .report import decode_report, dumps_report  # noqa: F401
from .tempo import DEFAULT_TEMPO, TempoMap  # noqa: F401
