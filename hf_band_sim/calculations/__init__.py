"""
Calculation utilities for the HF band simulation.

This module contains calculation utilities for:
- Maidenhead grid locator conversion
- Band definitions and band/channel lookups
- MUF/LUF calculations
- Signal strength and band recommendations
- Solar zenith and day/night path analysis
"""

from .bands import BandDefinition, BandRegistry, frequency_to_band
from .grid_locator import grid_to_latlon, is_valid_locator, latlon_to_grid
from .muf_calculator import MUFCalculator
from .propagation_calculator import PropagationCalculator
from .time_analyzer import TimeAnalyzer

__all__ = [
    'BandDefinition',
    'BandRegistry',
    'frequency_to_band',
    'grid_to_latlon',
    'is_valid_locator',
    'latlon_to_grid',
    'MUFCalculator',
    'PropagationCalculator',
    'TimeAnalyzer'
]
