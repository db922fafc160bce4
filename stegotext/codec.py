"""
LSB text codec

Text is written into the least significant bit of every R, G and B sample of
a RasterBuffer (alpha samples are never touched), most significant bit first
within each byte. Two frame formats exist:

    current:  b"STEGO1" | uint32 big-endian length | UTF-8(text + "$$END$$")
    legacy:   UTF-8(text + "$$END$$")

Encoding always produces the current format. Decoding tries the current
format first and falls back to a linear delimiter scan for legacy images.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .capacity import compute_capacity
from .errors import CapacityExceeded, DecodeError, InvalidLength, NoMessageFound
from .framing import (
    DELIMITER, HEADER_SIZE, LEGACY_MAX_CHARS, MAGIC_HEADER, MAX_DECLARED_LENGTH,
    bits_to_bytes, build_frame, build_legacy_frame, bytes_to_bits, carrier_indices, carrier_lsbs,
    unpack_length, usable_bits,
)
from .raster import RasterBuffer

logger = logging.getLogger(__name__)


@dataclass
class FrameInfo:
    """
    What the header bytes of a raster claim

    Attributes:
        format: 'current', 'legacy' (no magic, may hold a legacy frame) or
            'none' (too small to hold a header)
        declared_length: Length field of a current-format header
        max_length: Largest length the raster could honour
    """

    format: str
    declared_length: Optional[int] = None
    max_length: Optional[int] = None

    @property
    def length_valid(self) -> bool:
        if self.declared_length is None:
            return False
        return self.declared_length <= self.max_length


def _samples(raster: RasterBuffer) -> np.ndarray:
    return np.frombuffer(raster.data, dtype=np.uint8)


def _write_bits(raster: RasterBuffer, payload: bytes) -> RasterBuffer:
    bits = bytes_to_bits(payload)
    samples = _samples(raster).copy()
    indices = carrier_indices(len(samples), len(bits))
    samples[indices] = (samples[indices] & 0xFE) | bits
    return RasterBuffer(raster.width, raster.height, samples.tobytes())


def _read_bits(samples: np.ndarray, count: Optional[int] = None) -> np.ndarray:
    if count is None:
        return carrier_lsbs(samples)
    return samples[carrier_indices(len(samples), count)] & 1


def _check_capacity(raster: RasterBuffer, payload: bytes):
    required_bits = len(payload) * 8
    available_bits = raster.width * raster.height * 3
    if required_bits > available_bits:
        max_chars = compute_capacity(raster.width, raster.height)
        logger.debug("Frame needs %d bits, raster has %d", required_bits, available_bits)
        raise CapacityExceeded(max_chars, required_bits, available_bits)


def encode(raster: RasterBuffer, text: str) -> RasterBuffer:
    """
    Hide ``text`` in a copy of ``raster``

    Args:
        raster: Cover raster, left unmodified
        text: Text to embed

    Returns:
        RasterBuffer: New raster of the same size carrying the text

    Raises:
        CapacityExceeded: If the framed text does not fit
    """
    payload = build_frame(text)
    _check_capacity(raster, payload)
    logger.debug("Encoding %d byte frame into %dx%d raster",
                 len(payload), raster.width, raster.height)
    return _write_bits(raster, payload)


def encode_legacy(raster: RasterBuffer, text: str) -> RasterBuffer:
    """Hide ``text`` using the headerless legacy frame"""
    payload = build_legacy_frame(text)
    _check_capacity(raster, payload)
    return _write_bits(raster, payload)


def _max_declared_length(sample_count: int) -> int:
    room = usable_bits(sample_count) // 8 - HEADER_SIZE
    return max(0, min(room, MAX_DECLARED_LENGTH))


def _read_header(samples: np.ndarray) -> FrameInfo:
    header = bits_to_bytes(_read_bits(samples, HEADER_SIZE * 8))
    if len(header) < HEADER_SIZE:
        return FrameInfo('none')
    if header[:len(MAGIC_HEADER)] != MAGIC_HEADER:
        return FrameInfo('legacy')
    return FrameInfo(
        'current',
        declared_length=unpack_length(header[len(MAGIC_HEADER):HEADER_SIZE]),
        max_length=_max_declared_length(len(samples)),
    )


def inspect(raster: RasterBuffer) -> FrameInfo:
    """Classify the header of ``raster`` without decoding its payload"""
    return _read_header(_samples(raster))


def _decode_current(samples: np.ndarray, info: FrameInfo) -> str:
    length = info.declared_length
    if not info.length_valid:
        logger.debug("Declared length %d exceeds limit %d", length, info.max_length)
        raise InvalidLength(length, info.max_length)

    frame = bits_to_bytes(_read_bits(samples, (HEADER_SIZE + length) * 8))
    body = frame[HEADER_SIZE:HEADER_SIZE + length]
    try:
        message = body.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError() from e

    # A missing delimiter is tolerated once the length field is trusted
    if message.endswith(DELIMITER):
        return message[:-len(DELIMITER)]
    logger.debug("Current-format payload has no trailing delimiter")
    return message


def _decode_legacy(samples: np.ndarray) -> str:
    data = bits_to_bytes(_read_bits(samples))
    text = []
    tail = ''
    count = 0

    for byte in data:
        if 32 <= byte <= 126:
            char = chr(byte)
        elif byte > 0:
            try:
                char = bytes([byte]).decode('utf-8')
            except UnicodeDecodeError:
                char = chr(byte)
        else:
            char = ''

        if char:
            text.append(char)
            count += 1
            tail = (tail + char)[-len(DELIMITER):]

        if tail == DELIMITER:
            return ''.join(text)[:-len(DELIMITER)]
        if count > LEGACY_MAX_CHARS:
            logger.debug("Legacy scan stopped after %d characters", count)
            break

    raise NoMessageFound()


def decode(raster: RasterBuffer) -> str:
    """
    Recover text hidden by encode() or by the legacy encoder

    Raises:
        NoMessageFound: No header and no legacy delimiter
        InvalidLength: Header present but its length is implausible
        DecodeError: Length-framed payload is not valid UTF-8
    """
    samples = _samples(raster)
    info = _read_header(samples)
    if info.format == 'none':
        raise NoMessageFound()

    if info.format == 'current':
        logger.debug("Current-format header found, length %d", info.declared_length)
        return _decode_current(samples, info)

    logger.debug("No magic header, falling back to legacy scan")
    return _decode_legacy(samples)
