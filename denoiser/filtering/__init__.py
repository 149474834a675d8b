"""
Filtering module for denoiser.

This module provides the two operations built on the measurement-error model:
- Denoising: Recover latent positions with a Kalman filter
- Noising: Add synthetic measurement error to (simulated) trajectories
"""

# Kalman filter engine
from denoiser.filtering.engine import (
    KalmanResult,
    kf_innovation,
    kf_predict,
    kf_update,
    run_kalman_filter,
)

# Group dispatchers
from denoiser.filtering.kalman_filter import kalman_filter
from denoiser.filtering.noiser import noiser

__all__ = [
    # Engine
    'kf_predict',
    'kf_innovation',
    'kf_update',
    'run_kalman_filter',
    'KalmanResult',
    # Dispatchers
    'kalman_filter',
    'noiser',
]
