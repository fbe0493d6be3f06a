"""
Low-Level Image Transforms

This module contains atomic transformation functions used by
ColorPreprocessor and TypePreprocessor.

Functions:
    read_image_bytes: Resolve an image reference (path, file:// URI, bytes)
    load_image: Resolve and decode an image reference as RGB numpy array
    load_image_from_bytes: Decode image bytes as RGB numpy array
    validate_pixel_grid: Check an array is a usable RGB pixel grid
    resize_image: Bilinear resize to explicit width/height
    pack_argb: Pack RGB pixels into 32-bit ARGB integers
    to_grayscale: Fixed-weight luminance conversion (R = G = B)
    normalize_unit: Scale 8-bit values to float32 [0, 1]

Constants:
    LUMINANCE_WEIGHTS: Channel weights for grayscale conversion [R, G, B]
"""

import io
import logging
from pathlib import Path
from typing import Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import cv2
import numpy as np
from PIL import Image

from garment_classifier.exceptions import ImageDecodeError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

LUMINANCE_WEIGHTS: np.ndarray = np.array([0.2989, 0.5870, 0.1140], dtype=np.float64)

MAX_PIXEL_VALUE: float = 255.0

ImageRef = Union[bytes, bytearray, memoryview, str, Path, np.ndarray]
"""Anything load_image() accepts: raw bytes, a path, a file:// URI or a decoded grid."""


# =============================================================================
# Image Loading
# =============================================================================

def read_image_bytes(image_ref: Union[bytes, bytearray, memoryview, str, Path]) -> tuple[bytes, str]:
    """
    Resolve an image reference to its raw encoded bytes.

    Args:
        image_ref: Raw bytes, a filesystem path, or a file:// URI

    Returns:
        Tuple of (encoded bytes, human readable source for log/error messages)

    Raises:
        ImageDecodeError: If the reference uses an unsupported scheme or
            cannot be read

    Example:
        >>> data, source = read_image_bytes("file:///tmp/shirt.png")
        >>> source
        '/tmp/shirt.png'
    """
    if isinstance(image_ref, (bytes, bytearray, memoryview)):
        return bytes(image_ref), "<bytes>"

    if isinstance(image_ref, str) and "://" in image_ref:
        parsed = urlparse(image_ref)
        if parsed.scheme != "file":
            raise ImageDecodeError(image_ref, f"unsupported URI scheme '{parsed.scheme}'")
        path = Path(url2pathname(parsed.path))
    else:
        path = Path(image_ref)

    try:
        return path.read_bytes(), str(path)
    except OSError as e:
        raise ImageDecodeError(str(path), e.strerror or str(e)) from e
    except ValueError as e:
        # e.g. an embedded NUL byte in the path
        raise ImageDecodeError(repr(str(path)), str(e)) from e


def load_image(image_ref: ImageRef) -> np.ndarray:
    """
    Load an image reference as an RGB numpy array.

    Already decoded arrays are validated and passed through; everything else
    is resolved with read_image_bytes() and decoded.

    Args:
        image_ref: Raw bytes, a path, a file:// URI, or an RGB uint8 array

    Returns:
        RGB uint8 array with shape [H, W, 3]

    Raises:
        ImageDecodeError: If the reference is invalid or unreadable

    Example:
        >>> image = load_image("path/to/shirt.jpg")
        >>> image.shape
        (1080, 1920, 3)
    """
    if isinstance(image_ref, np.ndarray):
        try:
            validate_pixel_grid(image_ref)
        except ValueError as e:
            raise ImageDecodeError("<array>", str(e)) from e
        return image_ref

    image_bytes, source = read_image_bytes(image_ref)
    image = load_image_from_bytes(image_bytes, source=source)
    logger.debug(f"Loaded image {source} with shape {image.shape}")
    return image


def load_image_from_bytes(image_bytes: bytes, source: str = "<bytes>") -> np.ndarray:
    """
    Decode image bytes as an RGB numpy array.

    OpenCV (libjpeg-turbo/libpng) is the primary decoder. Formats it cannot
    handle, such as GIF, go through Pillow instead; palette and alpha images
    are flattened to RGB on that path.

    Args:
        image_bytes: Raw image bytes (JPEG, PNG, GIF, etc.)
        source: Name used in log and error messages

    Returns:
        RGB uint8 array with shape [H, W, 3]

    Raises:
        ImageDecodeError: If neither decoder accepts the data
    """
    if not image_bytes:
        raise ImageDecodeError(source, "empty input")

    nparr = np.frombuffer(image_bytes, np.uint8)
    try:
        bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        # Raised for headers past CV_IO_MAX_IMAGE_PIXELS, among others
        raise ImageDecodeError(source, f"rejected by OpenCV decoder: {e}") from e

    if bgr is not None:
        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)

    logger.debug(f"OpenCV could not decode {source}, falling back to Pillow")
    return _decode_with_pillow(image_bytes, source)


def _decode_with_pillow(image_bytes: bytes, source: str) -> np.ndarray:
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            rgb = img.convert("RGB")
            return np.array(rgb, dtype=np.uint8)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(source, f"unsupported or corrupted image data ({e})") from e


def validate_pixel_grid(image: np.ndarray) -> None:
    """
    Validate a decoded pixel grid.

    Args:
        image: Array to validate

    Raises:
        ValueError: If image is not a non-empty RGB uint8 array [H, W, 3]
    """
    if not isinstance(image, np.ndarray):
        raise ValueError(f"Expected numpy array, got {type(image)}")

    if image.ndim != 3:
        raise ValueError(f"Expected 3D array [H, W, C], got {image.ndim}D")

    if image.shape[2] != 3:
        raise ValueError(f"Expected 3 channels, got {image.shape[2]}")

    if image.dtype != np.uint8:
        raise ValueError(f"Expected uint8 dtype, got {image.dtype}")

    if image.shape[0] < 1 or image.shape[1] < 1:
        raise ValueError(f"Invalid image dimensions: {image.shape[:2]}")


# =============================================================================
# Geometric Transforms
# =============================================================================

def resize_image(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize image to exact target dimensions with bilinear filtering.

    Aspect ratio is not preserved: the models were trained on stretched
    inputs, not letterboxed ones.

    Args:
        image: RGB uint8 array with shape [H, W, 3]
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Resized RGB uint8 array with shape [height, width, 3]
    """
    if width < 1 or height < 1:
        raise ValueError(f"Invalid target size: {width}x{height}")

    return cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)


# =============================================================================
# Pixel Transforms
# =============================================================================

def pack_argb(image: np.ndarray) -> np.ndarray:
    """
    Pack RGB pixels into opaque 32-bit ARGB integers.

    Layout: 0xAARRGGBB, so red is (p >> 16) & 0xFF, green (p >> 8) & 0xFF
    and blue p & 0xFF.

    Args:
        image: RGB uint8 array with shape [H, W, 3]

    Returns:
        uint32 array with shape [H, W]

    Example:
        >>> pixel = np.array([[[0x12, 0x34, 0x56]]], dtype=np.uint8)
        >>> hex(int(pack_argb(pixel)[0, 0]))
        '0xff123456'
    """
    channels = image.astype(np.uint32)
    return (
        np.uint32(0xFF000000)
        | (channels[..., 0] << np.uint32(16))
        | (channels[..., 1] << np.uint32(8))
        | channels[..., 2]
    )


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert an RGB image to luminance-only grayscale.

    Formula: gray = 0.2989 * R + 0.5870 * G + 0.1140 * B, truncated toward
    zero and written back into all three channels. The weights sum to
    0.9999, so converting an already gray pixel lowers it by at most one
    level.

    Args:
        image: RGB uint8 array with shape [H, W, 3]

    Returns:
        RGB uint8 array with shape [H, W, 3] where R = G = B
    """
    gray = image.astype(np.float64) @ LUMINANCE_WEIGHTS
    # Non-negative, so the uint8 cast truncates
    gray = np.clip(gray, 0, 255).astype(np.uint8)
    return np.repeat(gray[..., np.newaxis], 3, axis=2)


def normalize_unit(values: np.ndarray) -> np.ndarray:
    """
    Scale 8-bit channel values to float32 in [0, 1].

    Args:
        values: Integer array with values in [0, 255]

    Returns:
        float32 array of the same shape
    """
    return values.astype(np.float32) / np.float32(MAX_PIXEL_VALUE)
