from __future__ import annotations

import hashlib
from typing import Iterator

UINT32_MASK = 0xFFFFFFFF
UINT32_RANGE = 4294967296
MULBERRY_INCREMENT = 0x6D2B79F5
HASH_INITIAL = 1779033703
HASH_MULTIPLIER = 3432918353


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply, unsigned result."""
    return (a * b) & UINT32_MASK


def seeded_stream(seed: int) -> Iterator[float]:
    """Infinite mulberry32 stream of floats in [0, 1).

    State is a single 32-bit unsigned integer; every operation wraps at 2**32 so
    the sequence is identical on every platform. The stream cannot be rewound:
    to replay it, build a new stream from the same seed.
    """
    state = seed & UINT32_MASK
    while True:
        state = (state + MULBERRY_INCREMENT) & UINT32_MASK
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK
        yield ((t ^ (t >> 14)) & UINT32_MASK) / UINT32_RANGE


def hash_chunk_seed(world_seed: str | int, cx: int, cy: int) -> int:
    """Order-sensitive Murmur-style mix of ``"<seed>:<cx>:<cy>"`` into 32 bits.

    Characters are consumed as UTF-16 code units so non-ASCII seeds hash the same
    way they do in a browser save.
    """
    text = f"{world_seed}:{cx}:{cy}"
    encoded = text.encode("utf-16-le")
    units = [int.from_bytes(encoded[index : index + 2], "little") for index in range(0, len(encoded), 2)]
    h = (HASH_INITIAL ^ len(units)) & UINT32_MASK
    for unit in units:
        h = _imul(h ^ unit, HASH_MULTIPLIER)
        h = ((h << 13) | (h >> 19)) & UINT32_MASK
    return h


def chunk_stream(world_seed: str | int, cx: int, cy: int) -> Iterator[float]:
    return seeded_stream(hash_chunk_seed(world_seed, cx, cy))


def derive_stream_seed(master_seed: str | int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)
