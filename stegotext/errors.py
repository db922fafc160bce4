"""
Exceptions raised by the StegoText codec and its collaborators
"""

from typing import Optional


class StegoError(Exception):
    """Base class for all StegoText errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CapacityExceeded(StegoError):
    """Payload plus framing does not fit into the raster"""

    def __init__(self, max_chars: int, required_bits: Optional[int] = None,
                 available_bits: Optional[int] = None):
        super().__init__(f"Text too long. Maximum capacity: {max_chars} characters")
        self.max_chars = max_chars
        self.required_bits = required_bits
        self.available_bits = available_bits


class NoMessageFound(StegoError):
    """No current-format header and no legacy delimiter in the raster"""

    def __init__(self, message: str = "No hidden message found in this image"):
        super().__init__(message)


class InvalidLength(StegoError):
    """Header is present but declares an implausible payload length"""

    def __init__(self, length: int, limit: int):
        super().__init__("Invalid message length detected")
        self.length = length
        self.limit = limit


class DecodeError(StegoError):
    """Length-framed payload bytes are not valid UTF-8"""

    def __init__(self, message: str = "Hidden message is not valid UTF-8 text"):
        super().__init__(message)


class FrameExtractionError(StegoError):
    """A frame could not be read from a video file"""
