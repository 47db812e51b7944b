"""
Recursive Length Prefix (RLP) serialisation.

Items are ``bytes`` or (nested) lists/tuples of items.  Non-negative ints
are encoded as their minimal big-endian bytes, so 0 becomes the empty
string (0x80 on the wire) and 128 becomes 0x81 0x80.

:func:`decode` only accepts canonical encodings.
"""

from __future__ import annotations

from typing import Union

from etherseed_core.errors import DecodingError, EncodingError

Item = Union[bytes, int, list, tuple]

SHORT_STRING = 0x80
LONG_STRING = 0xB7
SHORT_LIST = 0xC0
LONG_LIST = 0xF7


def int_to_big_endian(value: int) -> bytes:
    """Minimal big-endian bytes, no leading zero; 0 -> b""."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"Expected an integer, got {type(value).__name__}")
    if value < 0:
        raise EncodingError("RLP cannot encode negative integers")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def big_endian_to_int(data: bytes) -> int:
    if data[:1] == b"\x00":
        raise DecodingError("Integer has a leading zero byte")
    return int.from_bytes(data, "big")


def _length_prefix(length: int, offset: int) -> bytes:
    if length <= 55:
        return bytes([offset + length])
    length_bytes = int_to_big_endian(length)
    if len(length_bytes) > 8:
        raise EncodingError("RLP payload too long")
    return bytes([offset + 55 + len(length_bytes)]) + length_bytes


def encode(item: Item) -> bytes:
    if isinstance(item, (bytes, bytearray)):
        data = bytes(item)
        if len(data) == 1 and data[0] < SHORT_STRING:
            return data
        return _length_prefix(len(data), SHORT_STRING) + data
    if isinstance(item, (list, tuple)):
        payload = b"".join(encode(sub) for sub in item)
        return _length_prefix(len(payload), SHORT_LIST) + payload
    if isinstance(item, int) and not isinstance(item, bool):
        return encode(int_to_big_endian(item))
    raise EncodingError(f"Cannot RLP-encode value of type {type(item).__name__}")


# ===================================================================
#  Decoding
# ===================================================================

def _read_length(data: bytes, pos: int, size: int) -> int:
    raw = data[pos:pos + size]
    if len(raw) != size:
        raise DecodingError("Truncated length prefix")
    if raw[0] == 0:
        raise DecodingError("Length prefix has a leading zero byte")
    length = int.from_bytes(raw, "big")
    if length <= 55:
        raise DecodingError("Long form used for a short payload")
    return length


def _decode_at(data: bytes, pos: int) -> tuple[bytes | list, int]:
    if pos >= len(data):
        raise DecodingError("Unexpected end of input")
    prefix = data[pos]

    if prefix < SHORT_STRING:
        return data[pos:pos + 1], pos + 1

    if prefix <= LONG_STRING:
        length = prefix - SHORT_STRING
        start = pos + 1
    elif prefix < SHORT_LIST:
        size = prefix - LONG_STRING
        length = _read_length(data, pos + 1, size)
        start = pos + 1 + size
    elif prefix <= LONG_LIST:
        length = prefix - SHORT_LIST
        start = pos + 1
    else:
        size = prefix - LONG_LIST
        length = _read_length(data, pos + 1, size)
        start = pos + 1 + size

    end = start + length
    if end > len(data):
        raise DecodingError("Payload runs past the end of input")

    if prefix < SHORT_LIST:
        body = data[start:end]
        if length == 1 and body[0] < SHORT_STRING:
            raise DecodingError("Single byte below 0x80 must not be length-prefixed")
        return body, end

    items = []
    cursor = start
    while cursor < end:
        item, cursor = _decode_at(data, cursor)
        items.append(item)
    if cursor != end:
        raise DecodingError("List payload length mismatch")
    return items, end


def decode(data: bytes) -> bytes | list:
    """Decode exactly one RLP item; trailing bytes are an error."""
    item, end = _decode_at(bytes(data), 0)
    if end != len(data):
        raise DecodingError(f"{len(data) - end} trailing bytes after RLP item")
    return item
