"""
Utilities module for the denoiser library.

This module provides evaluation metrics comparing estimated and true
trajectories, and the estimation of VAR(1) measurement error parameters.
"""

from denoiser.utilities.evaluation import (
    VAR1Fit,
    fit_var1,
    mean_absolute_deviation,
    root_mean_squared_error,
)

__all__ = [
    'mean_absolute_deviation',
    'root_mean_squared_error',
    'fit_var1',
    'VAR1Fit',
]
