"""
Maidenhead grid locator conversions.
"""

from typing import Optional, Tuple

# Largest coordinates still inside the last field
GRID_EDGE_LON = 180.0 - 1e-9
GRID_EDGE_LAT = 90.0 - 1e-9


def is_valid_locator(grid: Optional[str]) -> bool:
    """Check that a locator has at least field and square characters."""
    return grid is not None and len(grid.strip()) >= 4


def grid_to_latlon(grid: Optional[str]) -> Tuple[float, float]:
    """
    Convert a Maidenhead grid locator to latitude/longitude.

    Four-character locators resolve to the centre of the square. Six-character
    locators resolve to the south-west corner of the subsquare. Anything
    shorter than four characters returns (0.0, 0.0).

    Args:
        grid: Maidenhead locator, e.g. "FN20" or "FN20vr"

    Returns:
        Tuple of (latitude, longitude) in degrees
    """
    if not is_valid_locator(grid):
        return 0.0, 0.0

    grid = grid.strip()

    lon = (ord(grid[0].upper()) - ord('A')) * 20.0 - 180.0
    lon += (ord(grid[2]) - ord('0')) * 2.0

    lat = (ord(grid[1].upper()) - ord('A')) * 10.0 - 90.0
    lat += (ord(grid[3]) - ord('0')) * 1.0

    if len(grid) >= 6:
        lon += (ord(grid[4].lower()) - ord('a')) * 2.0 / 24.0
        lat += (ord(grid[5].lower()) - ord('a')) * 1.0 / 24.0
    else:
        # Centre of the square
        lon += 1.0
        lat += 0.5

    return lat, lon


def latlon_to_grid(lat: float, lon: float) -> str:
    """
    Encode latitude/longitude as a 6-character Maidenhead locator.

    Coordinates outside the grid are clamped to its edge, so the north pole
    and the antimeridian land in the last field ("RR99xx") instead of past it.
    """
    lon = min(max(lon, -180.0), GRID_EDGE_LON) + 180.0
    lat = min(max(lat, -90.0), GRID_EDGE_LAT) + 90.0

    lon_field, lon_rest = divmod(lon, 20.0)
    lat_field, lat_rest = divmod(lat, 10.0)
    lon_square, lon_rest = divmod(lon_rest, 2.0)
    lat_square, lat_rest = divmod(lat_rest, 1.0)

    return ''.join((
        chr(ord('A') + int(lon_field)),
        chr(ord('A') + int(lat_field)),
        str(int(lon_square)),
        str(int(lat_square)),
        chr(ord('a') + int(lon_rest * 12)),
        chr(ord('a') + int(lat_rest * 24)),
    ))
