"""
Capacity calculations for LSB text embedding
"""

import logging
from typing import Dict, Optional, Tuple

from PIL import Image

from .framing import BITS_PER_PIXEL, FRAME_OVERHEAD_BYTES

logger = logging.getLogger(__name__)


def compute_capacity(width: int, height: int) -> int:
    """
    Maximum payload size in bytes that a ``width`` x ``height`` raster can carry.

    One bit is stored per R, G and B sample. The magic token, the length field
    and the delimiter are subtracted first. The estimate assumes one byte per
    character, so multi-byte UTF-8 text fits fewer characters than reported.
    """
    total_bits = width * height * BITS_PER_PIXEL
    remaining = total_bits - FRAME_OVERHEAD_BYTES * 8
    return max(0, remaining // 8)


class CapacityManager:
    """Capacity reporting for images on disk or known dimensions"""

    def _resolve_size(self, cover_image: Optional[str],
                      image_size: Optional[Tuple[int, int]]) -> Tuple[int, int]:
        if image_size is not None:
            width, height = image_size
            return int(width), int(height)
        if cover_image is None:
            raise ValueError("Either cover_image or image_size is required")
        with Image.open(cover_image) as img:
            return img.size

    def calculate_capacity(self, cover_image: Optional[str] = None,
                           image_size: Optional[Tuple[int, int]] = None) -> Dict:
        """
        Get capacity information for an image

        Args:
            cover_image: Path to an image file
            image_size: (width, height) if no file is available

        Returns:
            dict: width, height, total_bits, overhead_bytes, max_bytes
        """
        width, height = self._resolve_size(cover_image, image_size)
        info = {
            'width': width,
            'height': height,
            'total_bits': width * height * BITS_PER_PIXEL,
            'overhead_bytes': FRAME_OVERHEAD_BYTES,
            'max_bytes': compute_capacity(width, height),
        }
        logger.debug("Capacity for %dx%d: %d bytes", width, height, info['max_bytes'])
        return info

    def check_text_fits(self, text: str, cover_image: Optional[str] = None,
                        image_size: Optional[Tuple[int, int]] = None) -> Dict:
        """
        Check whether ``text`` fits into an image

        Returns:
            dict: fits, required_bytes, max_bytes, remaining_bytes, usage_percent
        """
        info = self.calculate_capacity(cover_image, image_size)
        required_bytes = len(text.encode('utf-8'))
        required_bits = (required_bytes + FRAME_OVERHEAD_BYTES) * 8
        max_bytes = info['max_bytes']

        if max_bytes:
            usage = round(required_bytes / max_bytes * 100, 1)
        else:
            usage = 100.0 if required_bytes else 0.0

        return {
            'fits': required_bits <= info['total_bits'],
            'required_bytes': required_bytes,
            'max_bytes': max_bytes,
            'remaining_bytes': max(0, max_bytes - required_bytes),
            'usage_percent': usage,
        }
