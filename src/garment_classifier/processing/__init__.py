"""
Processing Module - Image Loading and Model Input Preparation

This module turns an image reference into the two model input buffers:
- Color model: bilinear resize, ARGB channel extraction, [0,1] scaling
- Type model: bilinear resize, luminance grayscale, [0,1] scaling
"""

from garment_classifier.processing.transforms import (
    load_image,
    load_image_from_bytes,
    read_image_bytes,
    resize_image,
    pack_argb,
    to_grayscale,
    normalize_unit,
)

from garment_classifier.processing.tensor import InputTensor
from garment_classifier.processing.color_preprocess import ColorPreprocessor, preprocess_color
from garment_classifier.processing.type_preprocess import TypePreprocessor, preprocess_type

__all__ = [
    # Low-level transforms
    "load_image",
    "load_image_from_bytes",
    "read_image_bytes",
    "resize_image",
    "pack_argb",
    "to_grayscale",
    "normalize_unit",
    # High-level preprocessors
    "InputTensor",
    "ColorPreprocessor",
    "TypePreprocessor",
    "preprocess_color",
    "preprocess_type",
]
