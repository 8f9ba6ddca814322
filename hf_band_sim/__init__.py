"""
HF band propagation simulation for amateur-radio voice servers.
"""

from .calculations import BandRegistry, grid_to_latlon, latlon_to_grid
from .conditions import ConditionState
from .simulation import HFBandSimulation
from .utils.events import (
    EXTERNAL_DATA_UPDATED, MUF_CHANGED, PROPAGATION_UPDATED, SIGNAL_STRENGTH_CHANGED, EventBus
)

__version__ = '1.0.0'

__all__ = [
    'BandRegistry',
    'ConditionState',
    'EventBus',
    'HFBandSimulation',
    'grid_to_latlon',
    'latlon_to_grid',
    'EXTERNAL_DATA_UPDATED',
    'MUF_CHANGED',
    'PROPAGATION_UPDATED',
    'SIGNAL_STRENGTH_CHANGED'
]
