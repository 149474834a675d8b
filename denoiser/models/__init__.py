"""
Model module for denoiser.

This module provides the models shared by noising and denoising:
- State-space models: movement and measurement equations for the Kalman filter
- Measurement models: generators of synthetic measurement error
"""

from denoiser.models.kalman_models import (
    KALMAN_MODELS,
    CallableStateSpaceModel,
    ConstantVelocity,
    ConstantVelocityNoise,
    ConstantVelocityTransition,
    ModelParameters,
    StateSpaceModel,
)
from denoiser.models.measurement_models import (
    MEASUREMENT_MODELS,
    CallableNoiseModel,
    Independent,
    NoiseModel,
    Temporal,
)
from denoiser.models.registry import resolve_kalman_model, resolve_noise_model

__all__ = [
    # State-space models
    'KALMAN_MODELS',
    'StateSpaceModel',
    'ConstantVelocity',
    'ConstantVelocityTransition',
    'ConstantVelocityNoise',
    'CallableStateSpaceModel',
    'ModelParameters',
    # Measurement models
    'MEASUREMENT_MODELS',
    'NoiseModel',
    'Independent',
    'Temporal',
    'CallableNoiseModel',
    # Model resolution
    'resolve_kalman_model',
    'resolve_noise_model',
]
