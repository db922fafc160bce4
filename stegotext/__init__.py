"""
StegoText - hide text in the least significant bits of images
"""

__version__ = "1.0.0"
__author__ = "StegoText Team"

from .capacity import CapacityManager, compute_capacity
from .codec import decode, encode, encode_legacy, inspect
from .core import StegoEngine
from .errors import (
    CapacityExceeded, DecodeError, FrameExtractionError, InvalidLength,
    NoMessageFound, StegoError,
)
from .raster import RasterBuffer, RasterConfig, load_raster, save_raster

__all__ = [
    'CapacityManager',
    'compute_capacity',
    'decode',
    'encode',
    'encode_legacy',
    'inspect',
    'StegoEngine',
    'StegoError',
    'CapacityExceeded',
    'NoMessageFound',
    'InvalidLength',
    'DecodeError',
    'FrameExtractionError',
    'RasterBuffer',
    'RasterConfig',
    'load_raster',
    'save_raster',
]
