"""Visualization utilities for consultation runs."""

from .plotting import (
    plot_waiting_times,
    plot_utilization,
    plot_simulation_report,
)

__all__ = [
    'plot_waiting_times',
    'plot_utilization',
    'plot_simulation_report',
]
