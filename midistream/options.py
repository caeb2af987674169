from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class ParserOptions:
    """Behaviour switches for :class:`midistream.parser.MidiParser`.

    reuse_buffers
        When True, ``advance()`` clears and refills the same dict and
        per-track lists on every call.  Anything the caller keeps from one
        call is overwritten by the next.  When False (default) every call
        returns freshly allocated containers.
    clamp_rewind
        When True (default), rewinding past the start lands at 0.0.  When
        False it raises :class:`midistream.errors.InvalidSeekTarget`.
    """

    reuse_buffers: bool = False
    clamp_rewind: bool = True

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ParserOptions":
        if not isinstance(raw, Mapping):
            raise ValueError(f"options must be an object, got {type(raw).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"unknown option(s): {', '.join(unknown)}")

        values = {}
        for name, value in raw.items():
            if not isinstance(value, bool):
                raise ValueError(f"option {name!r} must be a boolean, got {value!r}")
            values[name] = value
        return cls(**values)
