#!/usr/bin/env python3
"""Inspect a Standard MIDI File with the midistream decoder.

Examples
--------
Full decode as JSON:
    python tools/inspect_midi.py song.mid

Simulated real-time playback in 50 ms windows, starting 10 s in:
    python tools/inspect_midi.py song.mid --play 0.05 --seek 10

Cross-check channel message counts against mido:
    python tools/inspect_midi.py song.mid --compare-mido

Playback with reused output buffers:
    python tools/inspect_midi.py song.mid --play 0.05 --options '{"reuse_buffers": true}'
"""

from __future__ import annotations

import argparse
import json
import logging
from collections import Counter
from pathlib import Path
import sys
from typing import List, Sequence

import mido

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from midistream.errors import ExhaustedTracks, MidiError  # noqa: E402
from midistream.events import CHANNEL_EVENT_KINDS  # noqa: E402
from midistream.options import ParserOptions  # noqa: E402
from midistream.parser import MidiParser  # noqa: E402
from midistream.report import dumps_report  # noqa: E402


def format_fields(event) -> str:
    fields = event.to_dict()
    fields.pop("time")
    kind = fields.pop("kind")
    body = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{kind:<20} {body}".rstrip()


def play(parser: MidiParser, window: float, start: float) -> List[str]:
    lines: List[str] = []
    if start:
        parser.seek(start)
    while True:
        window_start = parser.position
        try:
            fired = parser.advance(window)
        except ExhaustedTracks:
            break
        for track_index, events in fired.items():
            for event in events:
                at = window_start + window * (1.0 - event.time)
                lines.append(f"{at:10.4f}s  track {track_index:2d}  {format_fields(event)}")
    return lines


def mido_channel_counts(path: Path) -> List[Counter]:
    midi = mido.MidiFile(str(path))
    return [
        Counter(msg.type for msg in track if not msg.is_meta and hasattr(msg, "channel"))
        for track in midi.tracks
    ]


def compare_with_mido(parser: MidiParser, path: Path) -> List[str]:
    ours = [
        sum(1 for event in events if event.kind in CHANNEL_EVENT_KINDS)
        for events in parser.decode_all()
    ]
    theirs = [sum(counts.values()) for counts in mido_channel_counts(path)]

    problems: List[str] = []
    if len(ours) != len(theirs):
        problems.append(f"track count: midistream={len(ours)} mido={len(theirs)}")
    for index, (a, b) in enumerate(zip(ours, theirs)):
        if a != b:
            problems.append(f"track {index}: midistream={a} mido={b} channel messages")
    return problems


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Decode a Standard MIDI File and print its events."
    )
    parser.add_argument("path", type=Path, help="Path to the .mid file to inspect.")
    parser.add_argument(
        "--play",
        type=float,
        default=None,
        metavar="WINDOW",
        help="Step through the file in WINDOW-second real-time windows.",
    )
    parser.add_argument(
        "--seek",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Start position for --play.",
    )
    parser.add_argument(
        "--compare-mido",
        action="store_true",
        help="Compare per-track channel message counts with mido.",
    )
    parser.add_argument(
        "--options",
        default=None,
        metavar="JSON",
        help='Parser options as a JSON object, e.g. {"reuse_buffers": true}.',
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    options = None
    if args.options is not None:
        try:
            options = ParserOptions.from_dict(json.loads(args.options))
        except ValueError as exc:
            parser.error(f"--options: {exc}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        midi = MidiParser.from_file(args.path, options)
        if args.compare_mido:
            problems = compare_with_mido(midi, args.path)
            for line in problems:
                print(line)
            if problems:
                return 1
            print(f"OK: {midi.track_count} track(s) match mido")
            return 0
        if args.play is not None:
            if args.play <= 0:
                parser.error("--play WINDOW must be positive")
            for line in play(midi, args.play, args.seek):
                print(line)
            return 0
        print(dumps_report(midi))
    except (OSError, MidiError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
