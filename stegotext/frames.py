"""
Single-frame video input

Only one frame of a video ever carries a message. The frame is handed to the
codec as a RasterBuffer and the result is written out as a lossless PNG.
"""

import logging
import os
from dataclasses import dataclass

import cv2
import numpy as np

from .errors import FrameExtractionError
from .raster import RasterBuffer

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = ('.mp4', '.mov', '.avi', '.mkv', '.webm', '.m4v')


@dataclass
class VideoMetadata:
    width: int
    height: int
    fps: float
    frame_count: int
    duration: float


def is_video(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in VIDEO_EXTENSIONS


def _open(path: str) -> cv2.VideoCapture:
    if not os.path.exists(path):
        raise FrameExtractionError(f"Video not found: {path}")
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        cap.release()
        raise FrameExtractionError("Failed to load video")
    return cap


def probe_video(path: str) -> VideoMetadata:
    """Read size, frame rate and length of a video"""
    cap = _open(path)
    try:
        fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        return VideoMetadata(
            width=int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            fps=fps,
            frame_count=frame_count,
            duration=frame_count / fps if fps else 0.0,
        )
    finally:
        cap.release()


def extract_frame(path: str, index: int = 0) -> RasterBuffer:
    """
    Decode one frame of a video into a RasterBuffer

    Args:
        path: Video file
        index: Zero-based frame number

    Returns:
        RasterBuffer: The frame as opaque RGBA samples
    """
    if index < 0:
        raise FrameExtractionError(f"Invalid frame index: {index}")

    cap = _open(path)
    try:
        if index:
            cap.set(cv2.CAP_PROP_POS_FRAMES, index)
        ok, frame = cap.read()
    finally:
        cap.release()

    if not ok or frame is None:
        raise FrameExtractionError(f"Cannot read frame {index} of {os.path.basename(path)}")

    rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    logger.debug("Extracted frame %d of %s (%dx%d)", index, path, rgba.shape[1], rgba.shape[0])
    return RasterBuffer.from_array(np.ascontiguousarray(rgba))
