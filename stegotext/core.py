"""
File-level steganography engine: images and video frames in, PNG out
"""

import logging
import os
from typing import Dict, Optional

from . import codec
from .capacity import CapacityManager
from .config import get_config
from .errors import NoMessageFound, StegoError
from .frames import extract_frame, is_video
from .raster import RasterBuffer, RasterConfig, load_raster, save_raster

logger = logging.getLogger(__name__)


class StegoEngine:
    """Hide text in images (or the first frame of a video) and read it back"""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize steganography engine

        Args:
            config: Configuration dict, defaults to get_config()
        """
        self.config = config if config is not None else get_config()
        self.raster_config = RasterConfig.from_dict(self.config.get('raster'))
        self.capacity = CapacityManager()
        self.last_error: Optional[str] = None

    def load(self, path: str) -> RasterBuffer:
        """Load an image, or frame 0 of a video, as a RasterBuffer"""
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        if is_video(path):
            return extract_frame(path, 0)
        return load_raster(path, self.raster_config)

    def default_output_path(self, cover: str) -> str:
        suffix = self.config.get('defaults', {}).get('output_suffix', '_stego')
        base = os.path.splitext(cover)[0]
        return f"{base}{suffix}.png"

    def embed_text_or_raise(self, cover: str, text: str,
                            output_image: Optional[str] = None) -> str:
        """
        Embed text into a cover image and save the result

        Args:
            cover: Image or video path
            text: Text to hide
            output_image: Output path; always written as PNG

        Returns:
            str: Path of the saved stego image
        """
        raster = self.load(cover)
        stego = codec.encode(raster, text)
        if output_image is None:
            output_image = self.default_output_path(cover)
        path = save_raster(stego, output_image)
        logger.info("Embedded %d characters into %s", len(text), path)
        return path

    def extract_text_or_raise(self, stego_image: str) -> str:
        """Read hidden text from an image or the first frame of a video"""
        raster = self.load(stego_image)
        if is_video(stego_image):
            try:
                return codec.decode(raster)
            except StegoError as e:
                raise NoMessageFound("No hidden message found in this video") from e
        return codec.decode(raster)

    def embed_text(self, cover: str, text: str,
                   output_image: Optional[str] = None) -> Optional[str]:
        """
        Embed text, reporting failure through last_error

        Returns:
            str: Output path, or None if failed
        """
        self.last_error = None
        try:
            return self.embed_text_or_raise(cover, text, output_image)
        except StegoError as e:
            self._fail(e.message)
        except FileNotFoundError as e:
            self._fail(f"File not found: {e}")
        except PermissionError as e:
            self._fail(f"Permission denied: {e}")
        except (OSError, ValueError) as e:
            self._fail(f"Error embedding text: {e}")
        return None

    def extract_text(self, stego_image: str) -> Optional[str]:
        """
        Extract text, reporting failure through last_error

        Returns:
            str: Hidden text, or None if failed
        """
        self.last_error = None
        try:
            return self.extract_text_or_raise(stego_image)
        except StegoError as e:
            self._fail(e.message)
        except FileNotFoundError as e:
            self._fail(f"File not found: {e}")
        except (OSError, ValueError) as e:
            self._fail(f"Error reading image: {e}")
        return None

    def get_capacity_info(self, cover: str) -> Dict:
        """Capacity of an image file or of a video's frame size"""
        raster = self.load(cover)
        return self.capacity.calculate_capacity(image_size=raster.size)

    def check_text_fits(self, text: str, cover: str) -> Dict:
        raster = self.load(cover)
        return self.capacity.check_text_fits(text, image_size=raster.size)

    def _fail(self, message: str):
        logger.warning(message)
        self.last_error = message
