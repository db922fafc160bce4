"""
Frame layout constants and bit-level helpers shared by the codec and the
capacity model.

Current frame:  MAGIC (6) | LENGTH (4, big-endian) | UTF-8(text + DELIMITER)
Legacy frame:   UTF-8(text + DELIMITER)
"""

import struct

import numpy as np

MAGIC_HEADER = b"STEGO1"
DELIMITER = "$$END$$"
DELIMITER_BYTES = DELIMITER.encode("utf-8")

LENGTH_FIELD_SIZE = 4
HEADER_SIZE = len(MAGIC_HEADER) + LENGTH_FIELD_SIZE
FRAME_OVERHEAD_BYTES = HEADER_SIZE + len(DELIMITER_BYTES)

CHANNELS = 4
BITS_PER_PIXEL = 3

# Hard ceilings used while decoding untrusted rasters
MAX_DECLARED_LENGTH = 10_000_000
LEGACY_MAX_CHARS = 1_000_000


def pack_length(length: int) -> bytes:
    return struct.pack(">I", length)


def unpack_length(data: bytes) -> int:
    return struct.unpack(">I", data)[0]


def build_frame(text: str) -> bytes:
    """Build the current-format byte sequence for ``text``"""
    body = (text + DELIMITER).encode("utf-8")
    return MAGIC_HEADER + pack_length(len(body)) + body


def build_legacy_frame(text: str) -> bytes:
    """Build the headerless legacy byte sequence for ``text``"""
    return (text + DELIMITER).encode("utf-8")


def usable_bits(sample_count: int) -> int:
    """Number of non-alpha samples in a buffer of ``sample_count`` samples"""
    return sample_count - sample_count // CHANNELS


def carrier_indices(sample_count: int, limit: int = None) -> np.ndarray:
    """
    Indices of the samples that carry bits, in write order.

    Every sample whose index is congruent to 3 mod 4 is an alpha sample and is
    skipped. ``limit`` truncates the result to the first ``limit`` carriers;
    only that many indices are ever computed.
    """
    count = usable_bits(sample_count)
    if limit is not None:
        count = min(count, limit)
    k = np.arange(count, dtype=np.int64)
    return (k // BITS_PER_PIXEL) * CHANNELS + k % BITS_PER_PIXEL


def carrier_lsbs(samples: np.ndarray) -> np.ndarray:
    """LSBs of every R, G and B sample of a whole RGBA buffer, in order"""
    return samples.reshape(-1, CHANNELS)[:, :BITS_PER_PIXEL].ravel() & 1


def bytes_to_bits(data: bytes) -> np.ndarray:
    """Unpack bytes into a 0/1 array, most significant bit first"""
    return np.unpackbits(np.frombuffer(data, dtype=np.uint8))


def bits_to_bytes(bits: np.ndarray) -> bytes:
    """Pack a 0/1 array into bytes, ignoring a trailing partial byte"""
    whole = (len(bits) // 8) * 8
    return np.packbits(bits[:whole].astype(np.uint8)).tobytes()
