"""Tests for the one-shot full-file decode."""

from __future__ import annotations

import io
from pathlib import Path

import mido
import pytest

from midistream.errors import (
    InvalidVLQ,
    MidiStructureError,
    TrackCountMismatch,
    UnknownMetaEvent,
)
from midistream.events import (
    ControlChange,
    EndOfTrack,
    EventKind,
    KeySignature,
    NoteOff,
    NoteOn,
    PitchWheel,
    ProgramChange,
    SetTempo,
    Text,
    TextType,
    TimeSignature,
)
from midistream.parser import MidiParser
from smf_bytes import (
    MS_DIVISION,
    end_of_track,
    header,
    meta,
    note_off,
    note_on,
    set_tempo,
    smf,
    track,
)


def test_minimal_file_decodes_to_single_end_of_track() -> None:
    data = header(fmt=0, ntracks=1, division=96) + track(end_of_track())
    parser = MidiParser(data)
    tracks = parser.decode_all()
    assert len(tracks) == 1
    assert tracks[0] == [EndOfTrack(time=0.0)]


def test_absolute_times_accumulate() -> None:
    data = smf(
        track(note_on(0, 60), note_off(250, 60), note_on(250, 62), end_of_track(500)),
        division=MS_DIVISION,
    )
    (events,) = MidiParser(data).decode_all()
    assert [e.time for e in events] == pytest.approx([0.0, 0.25, 0.5, 1.0])
    assert [e.kind for e in events] == [
        EventKind.NOTE_ON,
        EventKind.NOTE_OFF,
        EventKind.NOTE_ON,
        EventKind.END_OF_TRACK,
    ]


def test_tempo_change_applies_to_following_deltas() -> None:
    data = smf(
        track(
            set_tempo(0, 250_000),  # 0.5 ms per tick
            note_on(200, 60),
            set_tempo(0, 1_000_000),  # 2 ms per tick
            note_off(100, 60),
            end_of_track(),
        ),
        division=MS_DIVISION,
    )
    (events,) = MidiParser(data).decode_all()
    assert [e.time for e in events] == pytest.approx([0.0, 0.1, 0.1, 0.3, 0.3])


def test_tempo_from_first_track_carries_into_later_tracks() -> None:
    data = smf(
        track(set_tempo(0, 1_000_000), end_of_track()),
        track(note_on(500, 60), end_of_track()),
        division=MS_DIVISION,
    )
    tracks = MidiParser(data).decode_all()
    assert tracks[1][0].time == pytest.approx(1.0)


def test_track_without_end_of_track_stops_at_chunk_end() -> None:
    data = smf(
        track(note_on(0, 60), note_off(10, 60)),
        track(note_on(0, 70), end_of_track()),
    )
    tracks = MidiParser(data).decode_all()
    assert [e.kind for e in tracks[0]] == [EventKind.NOTE_ON, EventKind.NOTE_OFF]
    assert tracks[1][-1] == EndOfTrack(time=0.0)


def test_bytes_after_end_of_track_are_ignored() -> None:
    data = smf(track(note_on(0, 60), end_of_track(), b"\xDE\xAD"))
    (events,) = MidiParser(data).decode_all()
    assert len(events) == 2


def test_decode_error_resets_cursor_and_propagates() -> None:
    data = smf(track(note_on(0, 60), meta(0, 0x60, b"\x00"), end_of_track()))
    parser = MidiParser(data)
    with pytest.raises(UnknownMetaEvent):
        parser.decode_all()
    assert parser._reader.position == 0


def test_invalid_vlq_in_stream() -> None:
    data = smf(track(b"\xFF\xFF\xFF\xFF\x00", end_of_track()))
    with pytest.raises(InvalidVLQ):
        MidiParser(data).decode_all()


def test_decode_all_leaves_playback_state_untouched() -> None:
    data = smf(
        track(set_tempo(0, 1_000_000), note_on(100, 60), end_of_track(100)),
        division=MS_DIVISION,
    )
    parser = MidiParser(data)
    first = parser.decode_all()
    assert parser.tempo.microseconds_per_quarter == 500_000
    assert parser.tracks[0].cursor == parser.chunks[0].start
    assert parser.decode_all() == first


def test_construction_failure_is_structural() -> None:
    data = header(fmt=1, ntracks=2) + track(end_of_track())
    with pytest.raises(TrackCountMismatch):
        MidiParser(data)
    with pytest.raises(MidiStructureError):
        MidiParser(b"")


def test_from_file(tmp_path: Path) -> None:
    path = tmp_path / "tiny.mid"
    path.write_bytes(smf(track(note_on(0, 60), end_of_track())))
    parser = MidiParser.from_file(path)
    assert parser.track_count == 1
    assert len(parser.decode_all()[0]) == 2


def test_from_file_missing_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        MidiParser.from_file(tmp_path / "missing.mid")


# ── Cross-check against mido ───────────────────────────────────────


def _mido_song() -> bytes:
    mid = mido.MidiFile(type=1, ticks_per_beat=480)

    conductor = mido.MidiTrack()
    conductor.append(mido.MetaMessage("track_name", name="Conductor", time=0))
    conductor.append(mido.MetaMessage("time_signature", numerator=3, denominator=4, time=0))
    conductor.append(mido.MetaMessage("key_signature", key="Eb", time=0))
    conductor.append(mido.MetaMessage("set_tempo", tempo=600_000, time=0))
    conductor.append(mido.MetaMessage("set_tempo", tempo=400_000, time=960))
    conductor.append(mido.MetaMessage("end_of_track", time=0))
    mid.tracks.append(conductor)

    piano = mido.MidiTrack()
    piano.append(mido.Message("program_change", channel=2, program=5, time=0))
    piano.append(mido.Message("control_change", channel=2, control=7, value=100, time=0))
    for step, key in enumerate([60, 62, 64, 65]):
        piano.append(mido.Message("note_on", channel=2, note=key, velocity=90, time=0 if step == 0 else 240))
        piano.append(mido.Message("note_off", channel=2, note=key, velocity=40, time=240))
    piano.append(mido.Message("pitchwheel", channel=2, pitch=-4096, time=0))
    piano.append(mido.MetaMessage("end_of_track", time=0))
    mid.tracks.append(piano)

    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()


def test_matches_mido_messages() -> None:
    data = _mido_song()
    reference = mido.MidiFile(file=io.BytesIO(data))
    tracks = MidiParser(data).decode_all()

    conductor = tracks[0]
    assert conductor[0] == Text(text_type=TextType.TRACK_NAME, data=b"Conductor")
    assert conductor[1] == TimeSignature(
        numerator=3, denominator_exponent=2, clocks_per_click=24, notated_32nds_per_quarter=8
    )
    assert conductor[2] == KeySignature(sharps_flats=-3, minor=False)
    assert conductor[3] == SetTempo(microseconds_per_quarter=600_000)
    assert conductor[4] == SetTempo(microseconds_per_quarter=400_000, time=pytest.approx(1.2))

    piano = tracks[1]
    expected = []
    for msg in reference.tracks[1]:
        if msg.type == "note_on":
            expected.append(NoteOn(channel=msg.channel, key=msg.note, velocity=msg.velocity))
        elif msg.type == "note_off":
            expected.append(NoteOff(channel=msg.channel, key=msg.note, velocity=msg.velocity))
        elif msg.type == "program_change":
            expected.append(ProgramChange(channel=msg.channel, program=msg.program))
        elif msg.type == "control_change":
            expected.append(
                ControlChange(channel=msg.channel, controller=msg.control, value=msg.value)
            )
        elif msg.type == "pitchwheel":
            expected.append(PitchWheel(channel=msg.channel, value=msg.pitch + 8192))
        elif msg.type == "end_of_track":
            expected.append(EndOfTrack())

    for event in piano:
        event.time = 0.0
    assert piano == expected


def test_format0_times_match_mido() -> None:
    multi = mido.MidiFile(file=io.BytesIO(_mido_song()))
    single = mido.MidiFile(type=0, ticks_per_beat=multi.ticks_per_beat)
    single.tracks.append(mido.merge_tracks(multi.tracks))
    buf = io.BytesIO()
    single.save(file=buf)

    expected = []
    elapsed = 0.0
    for msg in mido.MidiFile(file=io.BytesIO(buf.getvalue())):
        elapsed += msg.time
        if not msg.is_meta:
            expected.append(elapsed)

    (events,) = MidiParser(buf.getvalue()).decode_all()
    ours = [e.time for e in events if e.kind not in _META_KINDS]
    assert ours == pytest.approx(expected)
    assert events[-1].time == pytest.approx(1.8)


_META_KINDS = {
    EventKind.TEXT,
    EventKind.TIME_SIGNATURE,
    EventKind.KEY_SIGNATURE,
    EventKind.SET_TEMPO,
    EventKind.END_OF_TRACK,
}
