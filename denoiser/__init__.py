"""
denoiser - Noising and denoising of two-dimensional trajectories.

denoiser adds realistic measurement error to simulated trajectories and
removes measurement error from observed ones. Both operations rest on the same
measurement-error model: a movement equation describing how positions evolve
and a measurement equation describing how they are observed.

Components
----------
- **preprocessing**: Column preparation, time-window binning, sampling rates
- **models**: State-space models (constant velocity) and measurement models
  (independent, temporal)
- **filtering**: Kalman filter engine and the `kalman_filter` / `noiser` entry points
- **utilities**: Evaluation metrics and VAR(1) estimation

Quick Start
-----------
```python
import numpy as np
import pandas as pd
import denoiser as dn

angles = np.linspace(0, 4 * np.pi, 100)
truth = pd.DataFrame({'time': np.arange(100.0),
                      'x': 10 * np.cos(angles),
                      'y': 10 * np.sin(angles)})

# Add independent measurement error
noised = dn.noiser(truth, model='independent', covariance=np.eye(2), seed=1)

# Remove it again with the constant velocity Kalman filter
smoothed = dn.kalman_filter(noised, model='constant_velocity', error=1)

# Compare with the truth
dn.utilities.mean_absolute_deviation(smoothed, truth)
```
"""

from denoiser._version import __version__, __version_info__
from denoiser import exceptions, filtering, models, preprocessing, utilities
from denoiser.filtering import kalman_filter, noiser
from denoiser.preprocessing import bin_observations

__all__ = [
    '__version__',
    '__version_info__',
    'exceptions',
    'filtering',
    'models',
    'preprocessing',
    'utilities',
    'kalman_filter',
    'noiser',
    'bin_observations',
]
