"""
Resolution of the ``model`` argument of the public dispatchers.

A model can be given as

- a name, looked up in a registry mapping names to model classes; extra
  keyword arguments are passed to the class,
- an object implementing the model interface (``build`` for state-space
  models, ``apply`` for noise models), used as-is,
- a plain function, wrapped in an adapter; extra keyword arguments are passed
  on every call.

The model is resolved once per call, before any group is processed.
"""

from typing import Any, Callable, Mapping, Optional, Union

from denoiser.exceptions import ConfigurationError
from denoiser.models.kalman_models import KALMAN_MODELS, CallableStateSpaceModel, StateSpaceModel
from denoiser.models.measurement_models import MEASUREMENT_MODELS, CallableNoiseModel, NoiseModel


def _resolve(model: Any,
             registry: Mapping[str, Callable[..., Any]],
             method: str,
             adapter: Callable[..., Any],
             kind: str,
             kwargs: dict) -> Any:
    if isinstance(model, str):
        try:
            factory = registry[model]
        except KeyError:
            available = ", ".join(repr(name) for name in registry)
            raise ConfigurationError(
                f"Unknown {kind} model {model!r}. Available models: {available}."
            ) from None
        return factory(**kwargs)

    # A model class rather than an instance
    if isinstance(model, type) and callable(getattr(model, method, None)):
        return model(**kwargs)

    if callable(getattr(model, method, None)):
        if kwargs:
            raise ConfigurationError(
                f"Keyword arguments ({', '.join(kwargs)}) cannot be combined with a {kind} "
                "model instance; configure the instance instead."
            )
        return model

    if callable(model):
        return adapter(model, **kwargs)

    raise ConfigurationError(
        f"Argument `model` should be a model name, an object with a `{method}` method, "
        f"or a function, got {type(model).__name__}."
    )


def resolve_kalman_model(model: Union[str, StateSpaceModel, Callable],
                         registry: Optional[Mapping[str, Callable[..., StateSpaceModel]]] = None,
                         **kwargs) -> StateSpaceModel:
    """Turn the ``model`` argument of :func:`kalman_filter` into a state-space model."""
    return _resolve(model, KALMAN_MODELS if registry is None else registry,
                    "build", CallableStateSpaceModel, "state-space", kwargs)


def resolve_noise_model(model: Union[str, NoiseModel, Callable],
                        registry: Optional[Mapping[str, Callable[..., NoiseModel]]] = None,
                        **kwargs) -> NoiseModel:
    """Turn the ``model`` argument of :func:`noiser` into a noise model."""
    return _resolve(model, MEASUREMENT_MODELS if registry is None else registry,
                    "apply", CallableNoiseModel, "measurement", kwargs)
