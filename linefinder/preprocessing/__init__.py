"""Preprocessing of raw images into binary edge maps."""

from .transforms import (
    ImageTransform, FunctionTransform, Grayscale, ContrastAdjust, Complement,
    GaussianBlur, CannyEdges, LaplacianOfGaussianEdges, OtsuBinarize,
)
from .pipeline import PreprocessingPipeline, PreprocessingReport, preprocess

__all__ = [
    'ImageTransform', 'FunctionTransform', 'Grayscale', 'ContrastAdjust', 'Complement',
    'GaussianBlur', 'CannyEdges', 'LaplacianOfGaussianEdges', 'OtsuBinarize',
    'PreprocessingPipeline', 'PreprocessingReport', 'preprocess',
]
