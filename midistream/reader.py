"""Cursor-based big-endian reads over an in-memory MIDI buffer."""

from __future__ import annotations

from typing import Tuple

from .errors import InvalidVLQ, TruncatedInput

MAX_VLQ_BYTES = 4


class ByteReader:
    """Sequential reader with a single movable cursor.

    ``limit`` bounds every read; it defaults to the end of the buffer and is
    narrowed to a track chunk's end while that track is being decoded.
    """

    __slots__ = ("data", "position", "limit")

    def __init__(self, data: bytes, position: int = 0) -> None:
        self.data = bytes(data)
        self.position = position
        self.limit = len(self.data)

    def reset_limit(self) -> None:
        self.limit = len(self.data)

    def _check(self, pos: int, width: int) -> None:
        if width < 0:
            raise ValueError("width must be non-negative")
        if pos < 0 or pos + width > self.limit:
            raise TruncatedInput(
                f"need {width} byte(s), {max(0, self.limit - pos)} available",
                offset=pos,
            )

    def peek_uint(self, width: int) -> int:
        self._check(self.position, width)
        return int.from_bytes(self.data[self.position : self.position + width], "big")

    def read_uint(self, width: int) -> int:
        value = self.peek_uint(width)
        self.position += width
        return value

    def read_u8(self) -> int:
        self._check(self.position, 1)
        value = self.data[self.position]
        self.position += 1
        return value

    def read_bytes(self, size: int) -> bytes:
        self._check(self.position, size)
        chunk = self.data[self.position : self.position + size]
        self.position += size
        return chunk

    def _vlq_at(self, pos: int) -> Tuple[int, int]:
        """Decode a VLQ starting at ``pos``; return (value, bytes consumed)."""
        value = 0
        for consumed in range(MAX_VLQ_BYTES):
            if pos + consumed >= self.limit:
                if consumed == 0:
                    self._check(pos, 1)
                raise InvalidVLQ("variable-length quantity runs past end of data", offset=pos)
            byte = self.data[pos + consumed]
            value = (value << 7) | (byte & 0x7F)
            if not byte & 0x80:
                return value, consumed + 1
        raise InvalidVLQ(
            f"variable-length quantity longer than {MAX_VLQ_BYTES} bytes", offset=pos
        )

    def peek_vlq(self) -> int:
        return self._vlq_at(self.position)[0]

    def read_vlq(self) -> int:
        value, size = self._vlq_at(self.position)
        self.position += size
        return value

    def find(self, byte: int, end: int | None = None) -> int:
        """Return the offset of ``byte`` at or after the cursor, or -1."""
        stop = self.limit if end is None else min(end, self.limit)
        return self.data.find(bytes([byte]), self.position, stop)
