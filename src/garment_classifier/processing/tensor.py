"""Flat input buffer handed from a preprocessor to the inference runner."""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass
class InputTensor:
    """
    Result container for color/type preprocessing.

    Attributes:
        values: Flat float32 buffer, length height * width * channels
        height: Model input height
        width: Model input width
        channels: Values emitted per pixel
        original_shape: (height, width) of the decoded image
    """

    values: np.ndarray
    height: int
    width: int
    channels: int
    original_shape: Tuple[int, int]

    def __len__(self) -> int:
        return int(self.values.size)

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        """NHWC shape the buffer is laid out for (batch of one)."""
        return (1, self.height, self.width, self.channels)

    def as_batch(self) -> np.ndarray:
        """Reshape the flat buffer to [1, H, W, C] for the runtime."""
        return self.values.reshape(self.shape)
