"""
Raster buffers and the image I/O that produces and consumes them

The codec works on RasterBuffer objects only. Turning image files into
buffers (and buffers back into lossless PNG files) happens here, driven by an
explicit RasterConfig instead of global state.
"""

import io
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageCms

from .framing import CHANNELS

logger = logging.getLogger(__name__)

COLOR_SPACES = ('passthrough', 'srgb')


@dataclass(frozen=True)
class RasterBuffer:
    """
    Decoded image as row-major RGBA samples, 8 bits per channel.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        data: width * height * 4 bytes in R, G, B, A order
    """

    width: int
    height: int
    data: bytes

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid raster size: {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise ValueError(
                f"Raster data has {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'RasterBuffer':
        """Build a buffer from an (height, width, 4) uint8 array"""
        if array.ndim != 3 or array.shape[2] != CHANNELS:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {array.shape}")
        height, width = array.shape[:2]
        return cls(width, height, np.ascontiguousarray(array, dtype=np.uint8).tobytes())

    @classmethod
    def blank(cls, width: int, height: int,
              fill: Tuple[int, int, int, int] = (0, 0, 0, 255)) -> 'RasterBuffer':
        array = np.empty((height, width, CHANNELS), dtype=np.uint8)
        array[:, :] = fill
        return cls.from_array(array)

    def to_array(self) -> np.ndarray:
        """Return a writable (height, width, 4) copy of the samples"""
        flat = np.frombuffer(self.data, dtype=np.uint8)
        return flat.reshape(self.height, self.width, CHANNELS).copy()


@dataclass
class RasterConfig:
    """
    How image files are turned into raster buffers

    Attributes:
        color_space: 'passthrough' keeps stored samples untouched, 'srgb'
            converts through an embedded ICC profile first
        premultiply_alpha: Scale RGB by alpha while loading
        allow_resample: Permit resizing when a target size is requested
    """

    color_space: str = 'passthrough'
    premultiply_alpha: bool = False
    allow_resample: bool = False

    def __post_init__(self):
        if self.color_space not in COLOR_SPACES:
            raise ValueError(
                f"Unknown color space: {self.color_space} (expected one of {', '.join(COLOR_SPACES)})"
            )

    @classmethod
    def from_dict(cls, values: Optional[dict]) -> 'RasterConfig':
        values = values or {}
        return cls(
            color_space=values.get('color_space', 'passthrough'),
            premultiply_alpha=bool(values.get('premultiply_alpha', False)),
            allow_resample=bool(values.get('allow_resample', False)),
        )


def _convert_to_srgb(img: Image.Image) -> Image.Image:
    icc = img.info.get('icc_profile')
    rgba = img.convert('RGBA')
    if not icc:
        return rgba

    alpha = rgba.getchannel('A')
    source = ImageCms.ImageCmsProfile(io.BytesIO(icc))
    target = ImageCms.createProfile('sRGB')
    rgb = ImageCms.profileToProfile(rgba.convert('RGB'), source, target, outputMode='RGB')
    rgb.putalpha(alpha)
    return rgb


def _premultiply(array: np.ndarray) -> np.ndarray:
    alpha = array[:, :, 3:4].astype(np.uint16)
    rgb = array[:, :, :3].astype(np.uint16)
    array[:, :, :3] = ((rgb * alpha + 127) // 255).astype(np.uint8)
    return array


def raster_from_image(img: Image.Image, config: Optional[RasterConfig] = None,
                      size: Optional[Tuple[int, int]] = None) -> RasterBuffer:
    """
    Convert a Pillow image into a RasterBuffer

    Args:
        img: Source image in any mode
        config: Loading options (defaults to RasterConfig())
        size: Optional (width, height) the buffer must have

    Returns:
        RasterBuffer: RGBA samples of the image
    """
    config = config or RasterConfig()

    if size is not None and tuple(size) != img.size:
        if not config.allow_resample:
            raise ValueError(
                f"Image is {img.size[0]}x{img.size[1]}, requested {size[0]}x{size[1]}; "
                f"resampling is disabled"
            )
        logger.debug("Resampling %s to %s", img.size, size)
        img = img.resize(tuple(size), Image.Resampling.LANCZOS)

    if config.color_space == 'srgb':
        img = _convert_to_srgb(img)
    elif img.mode != 'RGBA':
        img = img.convert('RGBA')

    array = np.array(img, dtype=np.uint8)
    if config.premultiply_alpha:
        array = _premultiply(array)
    return RasterBuffer.from_array(array)


def load_raster(path: str, config: Optional[RasterConfig] = None,
                size: Optional[Tuple[int, int]] = None) -> RasterBuffer:
    """Load an image file into a RasterBuffer"""
    with Image.open(path) as img:
        img.load()
        logger.debug("Loaded %s (%s, %dx%d)", path, img.format, img.size[0], img.size[1])
        return raster_from_image(img, config, size)


def to_image(raster: RasterBuffer) -> Image.Image:
    return Image.frombytes('RGBA', raster.size, raster.data)


def save_raster(raster: RasterBuffer, path: str) -> str:
    """
    Save a RasterBuffer as a lossless PNG

    The suffix is forced to .png since any lossy container destroys the
    embedded bits.

    Returns:
        str: Path the image was written to
    """
    if not path.lower().endswith('.png'):
        path = os.path.splitext(path)[0] + '.png'

    output_dir = os.path.dirname(path)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir, exist_ok=True)

    to_image(raster).save(path, format='PNG', compress_level=9)
    logger.debug("Saved %dx%d raster to %s", raster.width, raster.height, path)
    return path
