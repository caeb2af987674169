"""JSON report of a full decode, enums by name."""

from __future__ import annotations

import json
from typing import Any, Dict

from .parser import MidiParser


def decode_report(parser: MidiParser) -> Dict[str, Any]:
    division = parser.header.division
    tracks = parser.decode_all()
    return {
        "format": parser.header.format,
        "track_count": parser.header.track_count,
        "division": {
            "ticks_per_quarter": division.ticks_per_quarter,
            "smpte_format": division.smpte_format,
            "subframes": division.subframes,
        },
        "tracks": [
            {
                "index": index,
                "event_count": len(events),
                "duration_seconds": events[-1].time if events else 0.0,
                "events": [event.to_dict() for event in events],
            }
            for index, events in enumerate(tracks)
        ],
    }


def dumps_report(parser: MidiParser, *, indent: int = 2) -> str:
    return json.dumps(decode_report(parser), indent=indent)
