"""
Utility modules for the HF band simulation.
"""

from .logging_config import get_logger, setup_logging
from .background_tasks import TaskManager, setup_background_tasks
from .cache_manager import SignalCache
from .events import EventBus

__all__ = [
    'get_logger',
    'setup_logging',
    'TaskManager',
    'setup_background_tasks',
    'SignalCache',
    'EventBus'
]
