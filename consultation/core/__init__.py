"""Core components of the consultation simulator."""

from .base import (Client, Lawyer, LawyerSnapshot, LogSink, NullLogSink,
                   NullStatusSink, QueueEvent, StatusSink)
from .pool import LawyerPool
from .queue import QueueManager
from .allocator import Allocator, AllocationEvent, Assignment, ResourceToken, TokenKind
from .metrics import MetricsCollector

__all__ = [
    'Client',
    'Lawyer',
    'LawyerSnapshot',
    'LogSink',
    'NullLogSink',
    'NullStatusSink',
    'QueueEvent',
    'StatusSink',
    'LawyerPool',
    'QueueManager',
    'Allocator',
    'AllocationEvent',
    'Assignment',
    'ResourceToken',
    'TokenKind',
    'MetricsCollector',
]
