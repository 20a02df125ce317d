"""Legal consultation queueing simulator."""

from .config import SimulationConfig, load_config
from .core import Client, LawyerPool, QueueManager, Allocator, MetricsCollector
from .distributions import RandomProcess
from .system import SimulationController, SimulationState

__version__ = '0.1.0'

__all__ = [
    'SimulationConfig',
    'load_config',
    'Client',
    'LawyerPool',
    'QueueManager',
    'Allocator',
    'MetricsCollector',
    'RandomProcess',
    'SimulationController',
    'SimulationState',
]
