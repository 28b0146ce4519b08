"""Backend selection by name, configuration or environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

from ..errors import ConfigurationError
from .backends.base import ParallelBackend
from .backends.serial import SerialBackend

if TYPE_CHECKING:
    from ..config import CorrelationConfig

logger = logging.getLogger(__name__)

BackendType = Literal["serial", "multiprocessing", "mpi4py", "auto"]

# Environment variables set by common MPI launchers and schedulers
MPI_ENV_VARS = ("OMPI_COMM_WORLD_SIZE", "PMI_SIZE", "SLURM_NTASKS", "PBS_NP")

_default_backend: ParallelBackend | None = None


def _serial(**kwargs) -> ParallelBackend:
    return SerialBackend()


def _multiprocessing(n_workers: int | None = None, **kwargs) -> ParallelBackend:
    from .backends.multiprocessing_backend import MultiprocessingBackend

    return MultiprocessingBackend(n_workers=n_workers)


def _mpi4py(**kwargs) -> ParallelBackend:
    from .backends.mpi4py_backend import MPI4PyBackend

    return MPI4PyBackend()


def _auto(**kwargs) -> ParallelBackend:
    return create_backend(detect_backend(), **kwargs)


_FACTORIES: dict[str, Callable[..., ParallelBackend]] = {
    "serial": _serial,
    "multiprocessing": _multiprocessing,
    "mpi4py": _mpi4py,
    "auto": _auto,
}

BACKENDS: tuple[str, ...] = tuple(_FACTORIES)


def create_backend(name: BackendType, **kwargs) -> ParallelBackend:
    """
    Create a backend by name.

    Args:
        name: One of ``BACKENDS``.
        **kwargs: Backend options; ``n_workers`` is honoured by the
            multiprocessing backend and ignored by the others.

    Raises:
        ConfigurationError: If the name is unknown.
        ImportError: If the backend's package is not installed.
    """
    try:
        factory = _FACTORIES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown backend: {name}. Available: {', '.join(BACKENDS)}"
        ) from None
    backend = factory(**kwargs)
    logger.debug("created %s backend with %d workers", backend.name, backend.n_workers)
    return backend


def get_backend(
    backend: BackendType | ParallelBackend | None = None,
    **kwargs,
) -> ParallelBackend:
    """
    Resolve a backend name or instance.

    Args:
        backend: An instance (returned as is), a name, or None for the
            process-wide default (serial unless changed).
        **kwargs: Options for backends created by name.

    Examples:
        >>> get_backend()
        >>> get_backend("multiprocessing", n_workers=4)
    """
    global _default_backend

    if isinstance(backend, ParallelBackend):
        return backend
    if backend is not None:
        return create_backend(backend, **kwargs)
    if _default_backend is None:
        _default_backend = SerialBackend()
    return _default_backend


def backend_from_config(config: CorrelationConfig) -> ParallelBackend:
    """Create the backend a run configuration asks for."""
    return create_backend(config.backend, n_workers=config.n_workers)


def set_default_backend(backend: BackendType | ParallelBackend, **kwargs) -> ParallelBackend:
    """Replace the process-wide default backend and return it."""
    global _default_backend
    _default_backend = get_backend(backend, **kwargs)
    return _default_backend


def reset_default_backend() -> None:
    """Forget the default backend; the next default is serial again."""
    global _default_backend
    _default_backend = None


def detect_backend() -> BackendType:
    """
    Pick the most capable backend the environment supports.

    MPI when launched by an MPI launcher and mpi4py imports, otherwise a
    process pool on multi-core machines, otherwise serial.
    """
    launcher = next((var for var in MPI_ENV_VARS if var in os.environ), None)
    if launcher is not None:
        try:
            from mpi4py import MPI  # noqa: F401
        except ImportError:
            logger.info("%s is set but mpi4py is not installed", launcher)
        else:
            return "mpi4py"

    if (os.cpu_count() or 1) > 1:
        return "multiprocessing"
    return "serial"
