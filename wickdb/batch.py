"""Atomic collections of key/value updates and their binary encoding."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Protocol

HEADER_SIZE = 12

_SEQ = struct.Struct("<Q")
_COUNT = struct.Struct("<I")
_COUNT_OFFSET = 8


class ValueType(IntEnum):
    """Kind of a record stored in a batch or a memtable."""

    DELETION = 0
    VALUE = 1


class CorruptionError(Exception):
    """Raised when encoded batch contents cannot be decoded."""


class MemTableLike(Protocol):
    def add(self, seq: int, value_type: ValueType, key: bytes, value: bytes) -> None:
        ...


def _put_varint32(buf: bytearray, value: int) -> None:
    if not 0 <= value < (1 << 32):
        raise ValueError(f"length {value} does not fit in 32 bits")
    while value >= 0x80:
        buf.append((value & 0x7F) | 0x80)
        value >>= 7
    buf.append(value)


def _get_varint32(data: memoryview, pos: int) -> tuple[int, int] | None:
    """Decode a varint32 at ``pos``; return (value, new_pos) or None."""
    result = 0
    for shift in range(0, 35, 7):
        if pos >= len(data):
            return None
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            if result >= (1 << 32):
                return None
            return result, pos
    return None


def _get_prefixed_slice(data: memoryview, pos: int) -> tuple[bytes, int] | None:
    decoded = _get_varint32(data, pos)
    if decoded is None:
        return None
    length, pos = decoded
    end = pos + length
    if end > len(data):
        return None
    return bytes(data[pos:end]), end


class WriteBatch:
    """A collection of updates applied to a database atomically, in order.

    The encoded layout is an 8-byte little-endian starting sequence number,
    a 4-byte little-endian record count, then the records. Each record is a
    one-byte type tag followed by a varint-prefixed key and, for puts, a
    varint-prefixed value.
    """

    def __init__(self) -> None:
        self._contents = bytearray(HEADER_SIZE)

    def __copy__(self) -> WriteBatch:
        other = WriteBatch()
        other._contents = bytearray(self._contents)
        return other

    copy = __copy__

    def data(self) -> bytes:
        """Return the encoded contents of the batch."""
        return bytes(self._contents)

    def put(self, key: bytes, value: bytes) -> None:
        """Store the mapping ``key -> value``."""
        self.count += 1
        self._contents.append(ValueType.VALUE)
        _put_varint32(self._contents, len(key))
        self._contents += key
        _put_varint32(self._contents, len(value))
        self._contents += value

    def delete(self, key: bytes) -> None:
        """Erase the mapping for ``key`` if there is one."""
        self.count += 1
        self._contents.append(ValueType.DELETION)
        _put_varint32(self._contents, len(key))
        self._contents += key

    def approximate_size(self) -> int:
        """Size in bytes of the encoded batch."""
        return len(self._contents)

    def append(self, src: WriteBatch) -> None:
        """Copy the records of ``src`` to the end of this batch."""
        if len(src._contents) < HEADER_SIZE:
            raise ValueError("malformed WriteBatch (too small) to append")
        self.count += src.count
        self._contents += src._contents[HEADER_SIZE:]

    def clear(self) -> None:
        """Drop every buffered update and reset the header."""
        self._contents = bytearray(HEADER_SIZE)

    def insert_into(self, mem: MemTableLike) -> None:
        """Add every record to ``mem``, numbering them from the batch sequence.

        Records decoded before a corrupt one have already been added when
        :class:`CorruptionError` is raised.
        """
        if len(self._contents) < HEADER_SIZE:
            raise CorruptionError("malformed WriteBatch (too small)")
        data = memoryview(bytes(self._contents))
        pos = HEADER_SIZE
        found = 0
        seq = self.sequence
        while pos < len(data):
            found += 1
            tag = data[pos]
            pos += 1
            if tag == ValueType.VALUE:
                key_part = _get_prefixed_slice(data, pos)
                value_part = (
                    _get_prefixed_slice(data, key_part[1]) if key_part else None
                )
                if key_part is None or value_part is None:
                    raise CorruptionError("bad WriteBatch put")
                key, _ = key_part
                value, pos = value_part
                mem.add(seq, ValueType.VALUE, key, value)
            elif tag == ValueType.DELETION:
                key_part = _get_prefixed_slice(data, pos)
                if key_part is None:
                    raise CorruptionError("bad WriteBatch delete")
                key, pos = key_part
                mem.add(seq, ValueType.DELETION, key, b"")
            else:
                raise CorruptionError("unknown WriteBatch value type")
            seq += 1
        if found != self.count:
            raise CorruptionError("WriteBatch has wrong count")

    def set_contents(self, contents: bytes) -> None:
        """Replace the encoded contents wholesale."""
        self._contents = bytearray(contents)

    @property
    def count(self) -> int:
        """Number of records in the batch."""
        return _COUNT.unpack_from(self._contents, _COUNT_OFFSET)[0]

    @count.setter
    def count(self, value: int) -> None:
        _COUNT.pack_into(self._contents, _COUNT_OFFSET, value)

    @property
    def sequence(self) -> int:
        """Sequence number of the first record."""
        return _SEQ.unpack_from(self._contents, 0)[0]

    @sequence.setter
    def sequence(self, value: int) -> None:
        _SEQ.pack_into(self._contents, 0, value)

    def is_empty(self) -> bool:
        """True when the batch holds no records."""
        return self.count == 0

    def __len__(self) -> int:
        return self.count