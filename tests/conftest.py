# StegoText test configuration and shared fixtures

import os
import sys

import numpy as np
import pytest
from PIL import Image

# Add project root to path so main.py is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from stegotext import config as config_module
from stegotext.framing import bytes_to_bits, carrier_indices
from stegotext.raster import RasterBuffer


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's ~/.stegotext/config.yaml"""
    monkeypatch.setenv(config_module.CONFIG_ENV_VAR, str(tmp_path / 'absent.yaml'))
    monkeypatch.setattr(config_module, '_config_cache', None)


@pytest.fixture
def rng():
    return np.random.default_rng(20240601)


@pytest.fixture
def blank_raster():
    """64x64 opaque black raster"""
    return RasterBuffer.blank(64, 64)


@pytest.fixture
def noisy_raster(rng):
    """64x64 raster of random samples, alpha included"""
    array = rng.integers(0, 256, size=(64, 64, 4), dtype=np.uint8)
    return RasterBuffer.from_array(array)


@pytest.fixture
def cover_png(tmp_path, rng):
    """An 80x60 RGB PNG cover image"""
    array = rng.integers(0, 256, size=(60, 80, 3), dtype=np.uint8)
    path = tmp_path / 'cover.png'
    Image.fromarray(array, 'RGB').save(str(path))
    return str(path)


def write_raw_bytes(raster: RasterBuffer, payload: bytes) -> RasterBuffer:
    """Place arbitrary bytes in the carrier LSBs, bypassing frame building"""
    bits = bytes_to_bits(payload)
    samples = np.frombuffer(raster.data, dtype=np.uint8).copy()
    indices = carrier_indices(len(samples), len(bits))
    samples[indices] = (samples[indices] & 0xFE) | bits
    return RasterBuffer(raster.width, raster.height, samples.tobytes())


@pytest.fixture
def raw_writer():
    return write_raw_bytes


@pytest.fixture
def video_file(tmp_path):
    """A short 32x24 MJPG video; skipped where no writer backend is available"""
    import cv2

    path = tmp_path / 'clip.avi'
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*'MJPG'), 10.0, (32, 24))
    if not writer.isOpened():
        writer.release()
        pytest.skip('OpenCV has no MJPG writer in this environment')
    for shade in (40, 120, 200):
        writer.write(np.full((24, 32, 3), shade, dtype=np.uint8))
    writer.release()
    return str(path)
