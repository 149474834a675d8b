"""
Exceptions and warnings raised by denoiser.

All errors derive from :class:`DenoiserError` and additionally from the builtin
exception a caller would naturally expect (``TypeError`` for wrong input types,
``ValueError`` for wrong values), so existing ``except ValueError`` blocks keep
working.
"""


class DenoiserError(Exception):
    """Base class for all errors raised by denoiser."""


class InputTypeError(DenoiserError, TypeError):
    """The data handed to a public function is not a pandas or polars DataFrame."""


class DimensionError(DenoiserError, ValueError):
    """A required matrix is missing, not two-dimensional, or has the wrong shape."""


class NumericalError(DenoiserError, ValueError):
    """A matrix that should be symmetric positive definite cannot be factorised."""


class ConfigurationError(DenoiserError, ValueError):
    """An invalid scalar, column or model configuration was provided."""


class InsufficientDataWarning(UserWarning):
    """A group has too few observations to be filtered and is returned as-is."""
