"""
Shared constants for HF propagation calculations.
"""

EARTH_RADIUS_KM = 6371.0

# Maximum solar declination in degrees
SOLAR_DECLINATION_MAX = 23.44

# Points sampled along a path for the day/night estimate (plus the end point)
DAY_NIGHT_SAMPLES = 10

# Band definitions: band -> (frequency MHz, min km, max km, reliability, day factor, night factor)
BAND_DEFINITIONS = {
    160: (1.9, 0, 1000, 0.8, 0.5, 1.5),
    80: (3.75, 0, 1500, 0.85, 0.6, 1.4),
    60: (5.35, 200, 2000, 0.8, 0.7, 1.3),
    40: (7.15, 500, 3000, 0.9, 0.8, 1.2),
    30: (10.125, 800, 4000, 0.85, 0.9, 1.1),
    20: (14.175, 1000, 10000, 0.95, 1.3, 0.7),
    17: (18.118, 1500, 12000, 0.9, 1.4, 0.6),
    15: (21.225, 2000, 15000, 0.85, 1.5, 0.5),
    10: (28.85, 3000, 20000, 0.8, 1.6, 0.4),
    6: (52.0, 5000, 25000, 0.7, 1.7, 0.3),
}

# Used when a band id is not present in a registry
BAND_FREQUENCIES = {band: values[0] for band, values in BAND_DEFINITIONS.items()}

# Upper frequency bound (exclusive, MHz) -> band
FREQUENCY_BAND_LIMITS = [
    (2.0, 160),
    (5.0, 80),
    (6.0, 60),
    (9.0, 40),
    (12.0, 30),
    (16.0, 20),
    (20.0, 17),
    (25.0, 15),
    (40.0, 10),
    (60.0, 6),
]

# Band -> channel id on the voice server
DEFAULT_BAND_CHANNELS = {
    160: 1,
    80: 2,
    60: 3,
    40: 4,
    30: 5,
    20: 6,
    17: 7,
    15: 8,
    10: 9,
    6: 10,
}

# Seasons
WINTER = 0
SPRING = 1
SUMMER = 2
FALL = 3

SEASON_NAMES = {
    WINTER: 'Winter',
    SPRING: 'Spring',
    SUMMER: 'Summer',
    FALL: 'Fall',
}

SEASON_MUF_FACTORS = {
    WINTER: 0.8,
    SPRING: 1.1,
    SUMMER: 1.2,
    FALL: 1.0,
}

# Distance buckets (exclusive upper bound km) -> (base MUF, base LUF) in MHz
DISTANCE_BUCKETS = [
    (500, 7.0, 1.8),
    (1500, 14.0, 3.5),
    (3000, 21.0, 7.0),
]
LONG_DISTANCE_BASE_MUF = 28.0
LONG_DISTANCE_BASE_LUF = 10.0

# Daytime window for band recommendation (local hours)
DAYTIME_START_HOUR = 6
DAYTIME_END_HOUR = 18

# Signal strength shaping
SKIP_ZONE_STRENGTH = 0.3
OUT_OF_RANGE_STRENGTH = 0.1
MUF_PENALTY_SCALE = 5.0
LUF_PENALTY_SCALE = 2.0
JITTER_MIN = 0.8
JITTER_SPAN = 0.4

# Communication thresholds
SAME_BAND_THRESHOLD = 0.5
CROSS_BAND_THRESHOLD = 0.7
CROSS_BAND_MAX_RATIO = 2.0

# Condition ranges and defaults
SFI_MIN = 60
SFI_MAX = 300
K_INDEX_MIN = 0
K_INDEX_MAX = 9
DEFAULT_SFI = 120
DEFAULT_K_INDEX = 3
DEFAULT_SEASON = WINTER

# Internal model perturbation
PERTURBATION_PROBABILITY = 0.1
SFI_PERTURBATION = 20
K_INDEX_PERTURBATION = 2

# Path used for the MUF reported to hosts
REFERENCE_PATH_KM = 3000.0

# Refresh cadence in seconds
UPDATE_INTERVAL_DEFAULT = 300        # 5 minutes
EXTERNAL_UPDATE_INTERVAL_DEFAULT = 1800  # 30 minutes

# API timeouts in seconds
API_TIMEOUT_DEFAULT = 10
