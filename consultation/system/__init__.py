"""Simulation lifecycle."""

from .simulation import ServiceTask, SimulationController, SimulationState

__all__ = [
    'ServiceTask',
    'SimulationController',
    'SimulationState',
]
