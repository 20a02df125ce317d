"""
Visualization utilities for consultation runs.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import Dict, List, Optional
import seaborn as sns


def plot_waiting_times(samples: List[float], ax=None, title: str = "Waiting Times"):
    """Histogram of waiting times with the mean marked."""
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))

    if samples:
        sns.histplot(samples, bins=min(30, max(5, len(samples))), kde=len(samples) > 2, ax=ax)
        mean = float(np.mean(samples))
        ax.axvline(mean, color='red', linestyle='--', label=f'Mean {mean:.1f} s')
        ax.legend()
    else:
        ax.text(0.5, 0.5, 'No Waiting Time Data',
                ha='center', va='center', transform=ax.transAxes)

    ax.set_xlabel('Waiting time (s)')
    ax.set_ylabel('Clients')
    ax.set_title(title)
    return ax


def plot_utilization(utilization: Dict[str, float], ax=None,
                     high_category_id: str = '0'):
    """Bar chart of per-lawyer utilization; the high-category lawyer is highlighted."""
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))

    labels = sorted(utilization, key=int)
    values = [utilization[k] for k in labels]
    colors = ['tab:orange' if k == high_category_id else 'tab:blue' for k in labels]

    ax.bar([f'Lawyer {k}' for k in labels], values, color=colors)
    ax.set_ylim(0, 1)
    ax.set_ylabel('Utilization')
    ax.set_title('Lawyer Utilization')
    ax.tick_params(axis='x', rotation=45)
    ax.grid(True, axis='y', alpha=0.3)
    return ax


def plot_simulation_report(summary: Dict, samples: List[float],
                           title: str = "Legal Consultation Simulation",
                           save_path: Optional[str] = None):
    """Create a dashboard: waiting times, utilization, client flow and statistics."""
    fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(15, 10))
    fig.suptitle(title, fontsize=16)

    plot_waiting_times(samples, ax=ax1)
    plot_utilization(summary['utilization'], ax=ax2)

    clients = summary['clients']
    ax3.bar(['Arrived', 'Served', 'Dropped', 'Abandoned', 'Waiting'],
            [clients['arrived'], clients['served'], clients['dropped'],
             clients['abandoned'], clients['waiting']])
    ax3.set_ylabel('Number of Clients')
    ax3.set_title('Client Flow')

    ax4.axis('off')
    wt = summary['waiting_time']
    stats_text = (
        "Run Summary\n"
        "-----------\n"
        f"Simulated time: {summary['simulated_seconds']:.0f} s\n"
        f"Average waiting time: {summary['average_waiting_time']:.2f} s\n"
        f"95% CI: [{wt['ci_low']:.2f}, {wt['ci_high']:.2f}] s\n"
        f"Max waiting time: {wt['max']:.2f} s\n"
        f"High token peak: {summary['tokens']['high']['peak_in_use']}"
        f"/{summary['tokens']['high']['capacity']}\n"
        f"Regular token peak: {summary['tokens']['regular']['peak_in_use']}"
        f"/{summary['tokens']['regular']['capacity']}\n"
    )
    ax4.text(0.05, 0.95, stats_text, transform=ax4.transAxes,
             fontfamily='monospace', verticalalignment='top')

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
    return fig
