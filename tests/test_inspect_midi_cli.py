"""CLI integration tests for tools/inspect_midi.py."""

from __future__ import annotations

import io
import json
import os
from pathlib import Path
import subprocess
import sys

import mido

from smf_bytes import MS_DIVISION, end_of_track, header, note_off, note_on, smf, track

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPT = REPO_ROOT / "tools" / "inspect_midi.py"


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = str(REPO_ROOT)
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args],
        cwd=str(REPO_ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def _write_song(tmp_path: Path) -> Path:
    path = tmp_path / "song.mid"
    path.write_bytes(
        smf(
            track(note_on(250, 60), note_off(250, 60), end_of_track()),
            track(note_on(100, 40, channel=9), end_of_track(100)),
            division=MS_DIVISION,
        )
    )
    return path


def test_default_prints_json_report(tmp_path: Path) -> None:
    result = _run_cli(str(_write_song(tmp_path)))
    assert result.returncode == 0, result.stderr
    report = json.loads(result.stdout)
    assert report["track_count"] == 2
    assert [t["event_count"] for t in report["tracks"]] == [3, 2]


def test_play_prints_one_line_per_event(tmp_path: Path) -> None:
    result = _run_cli(str(_write_song(tmp_path)), "--play", "0.1")
    assert result.returncode == 0, result.stderr
    lines = result.stdout.splitlines()
    assert len(lines) == 5
    assert "NOTE_ON" in lines[0] and "track  1" in lines[0]
    assert lines[-1].split()[-1] == "END_OF_TRACK"


def test_play_with_seek_skips_earlier_events(tmp_path: Path) -> None:
    result = _run_cli(str(_write_song(tmp_path)), "--play", "0.1", "--seek", "0.3")
    assert result.returncode == 0, result.stderr
    assert "key=60" not in result.stdout.split("NOTE_OFF")[0]
    assert len(result.stdout.splitlines()) == 2


def test_compare_mido_agrees(tmp_path: Path) -> None:
    mid = mido.MidiFile(type=0, ticks_per_beat=96)
    notes = mido.MidiTrack()
    notes.append(mido.Message("note_on", note=60, velocity=64, time=0))
    notes.append(mido.Message("note_on", note=60, velocity=0, time=48))
    notes.append(mido.Message("control_change", control=123, value=0, time=0))
    mid.tracks.append(notes)
    buf = io.BytesIO()
    mid.save(file=buf)
    path = tmp_path / "mido.mid"
    path.write_bytes(buf.getvalue())

    result = _run_cli(str(path), "--compare-mido")
    assert result.returncode == 0, result.stdout + result.stderr
    assert result.stdout.startswith("OK: 1 track(s)")


def test_structural_error_exit_code(tmp_path: Path) -> None:
    path = tmp_path / "broken.mid"
    path.write_bytes(header(fmt=1, ntracks=2) + track(end_of_track()))
    result = _run_cli(str(path))
    assert result.returncode == 2
    assert "declares 2 track(s), found 1" in result.stderr


def test_missing_file_exit_code(tmp_path: Path) -> None:
    result = _run_cli(str(tmp_path / "nope.mid"))
    assert result.returncode == 2
    assert result.stderr.startswith("error:")


def test_options_flag_is_applied(tmp_path: Path) -> None:
    result = _run_cli(
        str(_write_song(tmp_path)),
        "--play",
        "0.1",
        "--options",
        '{"reuse_buffers": true, "clamp_rewind": false}',
    )
    assert result.returncode == 0, result.stderr
    assert len(result.stdout.splitlines()) == 5


def test_invalid_options_are_rejected(tmp_path: Path) -> None:
    result = _run_cli(str(_write_song(tmp_path)), "--options", '{"reuse": true}')
    assert result.returncode == 2
    assert "unknown option(s): reuse" in result.stderr

    result = _run_cli(str(_write_song(tmp_path)), "--options", "not json")
    assert result.returncode == 2
    assert "--options" in result.stderr
