"""
Color Model Preprocessing Pipeline

This module provides the ColorPreprocessor class for preparing images for
the color classification model.

Pipeline:
    1. Resize to the model's declared width x height (bilinear interpolation)
    2. Pack each pixel into a 32-bit ARGB integer
    3. Walk the grid x-major (outer loop over x, inner loop over y)
    4. Extract channels with shifts and masks:
       - 3 channels: R, G, B
       - 1 channel: the low byte of the pixel
    5. Scale to [0, 1] float32 and flatten
"""

from typing import Tuple

import numpy as np

from garment_classifier.processing.tensor import InputTensor
from garment_classifier.processing.transforms import (
    normalize_unit,
    pack_argb,
    resize_image,
    validate_pixel_grid,
)


# =============================================================================
# Constants
# =============================================================================

SUPPORTED_CHANNELS: Tuple[int, ...] = (1, 3)
"""Channel counts the color model input may declare."""


# =============================================================================
# Preprocessor Class
# =============================================================================

class ColorPreprocessor:
    """
    Preprocessor for the color classification model.

    The input dimensions come from the provisioned session, so one instance
    is built per model rather than per request.

    Attributes:
        width: Target input width
        height: Target input height
        channels: Values per pixel (1 or 3)

    Example:
        >>> preprocessor = ColorPreprocessor(width=24, height=24, channels=3)
        >>> image = np.random.randint(0, 256, (100, 150, 3), dtype=np.uint8)
        >>> result = preprocessor(image)
        >>> len(result)
        1728
        >>> 0.0 <= result.values.min() <= result.values.max() <= 1.0
        True
    """

    def __init__(self, width: int, height: int, channels: int = 3) -> None:
        """
        Initialize ColorPreprocessor.

        Args:
            width: Target width declared by the model
            height: Target height declared by the model
            channels: Channel count declared by the model (1 or 3)

        Raises:
            ValueError: If dimensions are not positive or channels unsupported
        """
        if width < 1 or height < 1:
            raise ValueError(f"Invalid target size: {width}x{height}")

        if channels not in SUPPORTED_CHANNELS:
            raise ValueError(
                f"Unsupported channel count {channels}, expected one of {SUPPORTED_CHANNELS}"
            )

        self.width = width
        self.height = height
        self.channels = channels

    def __call__(self, image: np.ndarray) -> InputTensor:
        return self.preprocess(image)

    def preprocess(self, image: np.ndarray) -> InputTensor:
        """
        Preprocess an image for color inference.

        Args:
            image: RGB uint8 array with shape [H, W, 3]

        Returns:
            InputTensor with width * height * channels values in [0, 1]

        Raises:
            ValueError: If image has invalid shape or dtype
        """
        validate_pixel_grid(image)

        original_shape = (image.shape[0], image.shape[1])

        resized = resize_image(image, self.width, self.height)

        # Pixel (x, y) lives at packed[y, x]; transposing makes x the outer axis
        packed = pack_argb(resized).T

        if self.channels == 1:
            components = (packed & 0xFF)[..., np.newaxis]
        else:
            components = np.stack(
                [
                    (packed >> 16) & 0xFF,
                    (packed >> 8) & 0xFF,
                    packed & 0xFF,
                ],
                axis=-1,
            )

        values = np.ascontiguousarray(normalize_unit(components).reshape(-1))

        return InputTensor(
            values=values,
            height=self.height,
            width=self.width,
            channels=self.channels,
            original_shape=original_shape,
        )


def preprocess_color(
    image: np.ndarray,
    target_width: int,
    target_height: int,
    channels: int,
) -> InputTensor:
    """Build the color model input buffer for an image.

    Args:
        image: RGB uint8 array with shape [H, W, 3]
        target_width: Model input width
        target_height: Model input height
        channels: Model input channel count (1 or 3)

    Returns:
        InputTensor of length target_width * target_height * channels
    """
    return ColorPreprocessor(target_width, target_height, channels).preprocess(image)
