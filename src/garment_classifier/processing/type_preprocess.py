"""
Type Model Preprocessing Pipeline

This module provides the TypePreprocessor class for preparing images for
the garment type model, which was trained on single-channel grayscale input.

Pipeline:
    1. Resize to the model's declared width x height (bilinear interpolation)
    2. Luminance grayscale: 0.2989 R + 0.5870 G + 0.1140 B into R = G = B
    3. Scale the red channel to [0, 1] float32
    4. Flatten row-major (outer loop over y, inner loop over x)
"""

import numpy as np

from garment_classifier.processing.tensor import InputTensor
from garment_classifier.processing.transforms import (
    normalize_unit,
    resize_image,
    to_grayscale,
    validate_pixel_grid,
)

TYPE_INPUT_CHANNELS: int = 1


class TypePreprocessor:
    """
    Preprocessor for the garment type model.

    Attributes:
        width: Target input width
        height: Target input height

    Example:
        >>> preprocessor = TypePreprocessor(width=28, height=28)
        >>> image = np.random.randint(0, 256, (100, 150, 3), dtype=np.uint8)
        >>> len(preprocessor(image))
        784
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Invalid target size: {width}x{height}")

        self.width = width
        self.height = height

    def __call__(self, image: np.ndarray) -> InputTensor:
        return self.preprocess(image)

    def preprocess(self, image: np.ndarray) -> InputTensor:
        """
        Preprocess an image for type inference.

        Args:
            image: RGB uint8 array with shape [H, W, 3]

        Returns:
            InputTensor with width * height values in [0, 1]

        Raises:
            ValueError: If image has invalid shape or dtype
        """
        validate_pixel_grid(image)

        original_shape = (image.shape[0], image.shape[1])

        resized = resize_image(image, self.width, self.height)
        grayscale = to_grayscale(resized)

        # Any channel works since R = G = B; red is the one the model expects
        values = np.ascontiguousarray(normalize_unit(grayscale[..., 0]).reshape(-1))

        return InputTensor(
            values=values,
            height=self.height,
            width=self.width,
            channels=TYPE_INPUT_CHANNELS,
            original_shape=original_shape,
        )


def preprocess_type(image: np.ndarray, target_width: int, target_height: int) -> InputTensor:
    """Build the type model input buffer for an image."""
    return TypePreprocessor(target_width, target_height).preprocess(image)
