"""
Trajectory preprocessing module for denoiser.

This module provides the helpers that shape trajectories around the filters:
- Preparation: Map user columns onto the canonical time/x/y/id layout and back
- Binning: Aggregate observations within fixed time windows
- Sampling rate: Calculate trajectory sampling intervals and frequencies
"""

# Preparation
from denoiser.preprocessing.prepare import Preparation, prepare, finalize, group_rows

# Binning
from denoiser.preprocessing.binning import bin_observations

# Sampling rate
from denoiser.preprocessing.sampling_rate import get_sampling_rate, get_sampling_frequency

__all__ = [
    # Preparation
    'Preparation',
    'prepare',
    'finalize',
    'group_rows',
    # Binning
    'bin_observations',
    # Sampling rate
    'get_sampling_rate',
    'get_sampling_frequency',
]
