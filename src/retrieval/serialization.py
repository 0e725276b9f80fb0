"""Binary codec for the persisted chunk store.

Layout (little-endian)::

    int32 count
    repeat count:
        int32   id
        string  content          # 7-bit varint byte length + UTF-8 bytes
        int32   embeddingLength
        float32 values[embeddingLength]

The string prefix is the variable-length integer written by .NET's
``BinaryWriter.Write(string)``: seven bits per byte, least significant group
first, high bit set on every byte except the last.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Iterable

import numpy as np

from src.grounding.chunk import Chunk
from src.grounding.errors import PersistenceCorrupt

_INT32 = struct.Struct("<i")
_FLOAT32 = np.dtype("<f4")
_INT32_MAX = 2**31 - 1
_MAX_VARINT_BYTES = 5


def _int32(value: int) -> bytes:
    if not 0 <= value <= _INT32_MAX:
        raise ValueError(f"Value {value} does not fit the store's int32 fields")
    return _INT32.pack(value)


def _varint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encode_chunk(chunk: Chunk) -> bytes:
    """Encode a single record."""
    content = chunk.content.encode("utf-8")
    values = np.asarray(chunk.embedding, dtype=_FLOAT32)
    return b"".join(
        (
            _int32(chunk.id),
            _varint(len(content)),
            content,
            _int32(len(values)),
            values.tobytes(),
        )
    )


def write_chunks(stream: BinaryIO, chunks: Iterable[Chunk]) -> int:
    """Write the count header and every record to ``stream``; return the count."""
    records = list(chunks)
    stream.write(_int32(len(records)))
    for chunk in records:
        stream.write(encode_chunk(chunk))
    return len(records)


def encode_chunks(chunks: Iterable[Chunk]) -> bytes:
    records = list(chunks)
    return _int32(len(records)) + b"".join(encode_chunk(c) for c in records)


class _Reader:
    """Bounds-checked cursor over an in-memory store image."""

    def __init__(self, data: bytes) -> None:
        self._view = memoryview(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._view) - self._offset

    def take(self, size: int, what: str) -> memoryview:
        if size > self.remaining:
            raise PersistenceCorrupt(
                f"truncated while reading {what} at byte {self._offset} "
                f"(need {size}, have {self.remaining})"
            )
        chunk = self._view[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def int32(self, what: str) -> int:
        value = _INT32.unpack(self.take(4, what))[0]
        if value < 0:
            raise PersistenceCorrupt(f"negative {what}: {value}")
        return value

    def varint(self, what: str) -> int:
        value = 0
        for index in range(_MAX_VARINT_BYTES):
            byte = self.take(1, what)[0]
            value |= (byte & 0x7F) << (7 * index)
            if not byte & 0x80:
                if value > _INT32_MAX:
                    raise PersistenceCorrupt(f"{what} out of range: {value}")
                return value
        raise PersistenceCorrupt(f"{what} varint longer than {_MAX_VARINT_BYTES} bytes")


def decode_chunks(data: bytes) -> list[Chunk]:
    """Decode a complete store image.

    Raises:
        PersistenceCorrupt: On truncation, invalid lengths, invalid UTF-8,
            invalid records or trailing bytes.
    """
    reader = _Reader(data)
    count = reader.int32("record count")

    chunks: list[Chunk] = []
    for index in range(count):
        chunk_id = reader.int32(f"id of record {index}")
        size = reader.varint(f"content length of record {index}")
        raw = reader.take(size, f"content of record {index}")
        try:
            content = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceCorrupt(f"record {index} content is not UTF-8: {e}") from e

        dims = reader.int32(f"embedding length of record {index}")
        values = reader.take(dims * _FLOAT32.itemsize, f"embedding of record {index}")
        embedding = tuple(np.frombuffer(values, dtype=_FLOAT32).tolist())

        try:
            chunks.append(Chunk(id=chunk_id, content=content, embedding=embedding))
        except ValueError as e:
            raise PersistenceCorrupt(f"record {index} is invalid: {e}") from e

    if reader.remaining:
        raise PersistenceCorrupt(f"{reader.remaining} trailing bytes after {count} records")
    return chunks


def read_chunks(stream: BinaryIO) -> list[Chunk]:
    """Read and decode everything left in ``stream``."""
    return decode_chunks(stream.read())
