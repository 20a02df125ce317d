"""Random variable distributions for the consultation simulator."""

from .random_variables import (
    ARRIVAL_MEAN_MS,
    SERVICE_MEAN_MS,
    RandomProcess,
    ScriptedRandomProcess,
    exponential,
)

__all__ = [
    'ARRIVAL_MEAN_MS',
    'SERVICE_MEAN_MS',
    'RandomProcess',
    'ScriptedRandomProcess',
    'exponential',
]
