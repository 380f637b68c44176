"""
Reusable decode functions for register descriptors.

Every decoder has the signature ``decode(interpreted, raw)`` where
``interpreted`` is the first data word of the read and ``raw`` is the
big-endian response buffer.
"""
import struct
from typing import Any, Callable


def scale(factor: float, digits: int = 2) -> Callable[[Any, bytes], float]:
    """Multiply the first word by ``factor``."""
    def _decode(interpreted: Any, raw: bytes) -> float:
        return round(interpreted * factor, digits)
    return _decode


def int16(interpreted: Any, raw: bytes) -> int:
    """Interpret the first word as a signed 16 bit integer."""
    return struct.unpack(">h", raw[:2])[0]


def uint32(interpreted: Any, raw: bytes) -> int:
    """Two registers, high word first."""
    return struct.unpack(">I", raw[:4])[0]


def int32(interpreted: Any, raw: bytes) -> int:
    return struct.unpack(">i", raw[:4])[0]


def float32(word_swap: bool = False, digits: int = 3) -> Callable[[Any, bytes], float]:
    """
    IEEE 754 float spread over two registers.

    Args:
        word_swap: Set when the device sends the low word first.
        digits: Rounding applied to the result.
    """
    def _decode(interpreted: Any, raw: bytes) -> float:
        data = raw[:4]
        if word_swap:
            data = data[2:4] + data[0:2]
        return round(struct.unpack(">f", data)[0], digits)
    return _decode


def boolean(interpreted: Any, raw: bytes) -> bool:
    return bool(interpreted)


def ascii_string(interpreted: Any, raw: bytes) -> str:
    """Register bytes as a NUL padded ASCII string."""
    return raw.decode("ascii", errors="replace").rstrip("\x00 ").strip()
