"""Exception taxonomy for Standard MIDI File decoding.

Construction-time problems derive from :class:`MidiStructureError` and leave
no parser behind.  Stream-level problems derive from
:class:`MidiDecodeError`; they abort the current decode call and carry the
byte offset (and track index, when known) where decoding stopped.
"""

from __future__ import annotations


class MidiError(ValueError):
    """Root of every error raised by this package."""


class MidiStructureError(MidiError):
    """The file's chunk layout or header is malformed."""


class MissingHeader(MidiStructureError):
    pass


class InvalidHeaderLength(MidiStructureError):
    pass


class InvalidFormat(MidiStructureError):
    pass


class NoTracks(MidiStructureError):
    pass


class InvalidDeltaTiming(MidiStructureError):
    pass


class TrackCountMismatch(MidiStructureError):
    """Fewer ``MTrk`` chunks were found than the header declares."""

    def __init__(self, declared: int, found: int) -> None:
        super().__init__(f"header declares {declared} track(s), found {found}")
        self.declared = declared
        self.found = found


class MidiDecodeError(MidiError):
    """A track's byte stream could not be decoded at ``offset``."""

    def __init__(self, message: str, *, offset: int, track: int | None = None) -> None:
        super().__init__(message)
        self.detail = message
        self.offset = offset
        self.track = track
        # advance() output fired by the other tracks before this error surfaced
        self.partial: dict | None = None

    def __str__(self) -> str:
        prefix = "" if self.track is None else f"track {self.track}: "
        return f"{prefix}{self.detail} (at 0x{self.offset:X})"


class TruncatedInput(MidiDecodeError):
    pass


class InvalidVLQ(MidiDecodeError):
    pass


class MissingSysexTerminator(MidiDecodeError):
    pass


class UnknownMetaEvent(MidiDecodeError):
    pass


class MissingRunningStatus(MidiDecodeError):
    """A data byte appeared where a status byte was required."""


class ExhaustedTracks(MidiError):
    """Every track has already consumed its end-of-track event."""


class InvalidSeekTarget(MidiError):
    pass
