"""
Configuration file for the seafloor climate-hazard workflow.

This module centralizes all configurable parameters including:
- Dataset file locations (bathymetry, climate anomalies, vector layers)
- Hazard band order for cumulative impact
- Depth thresholds for habitat bucketing and contour overlays
- Time of emergence and climate velocity settings
- Plotting defaults

To run the workflow for a different scenario or period, edit SCENARIO and
PERIOD below and re-run scripts 01-03.
"""

import math
from pathlib import Path

# =====================================================================
# Project Paths
# =====================================================================

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
DATA_RASTERS = DATA_DIR / "rasters"
DATA_VECTORS = DATA_DIR / "vectors"
DATA_OCCURRENCES = DATA_DIR / "occurrences"

# Results directories
RESULTS_DIR = PROJECT_ROOT / "results"
RESULTS_TABLES = RESULTS_DIR / "tables"
RESULTS_FIGURES = RESULTS_DIR / "figures"

# Bathymetry (elevation in meters, negative below sea level)
BATHYMETRY_PATH = DATA_RASTERS / "bathymetry.tif"

# Vector layers
EEZ_PATH = DATA_VECTORS / "eez.gpkg"
CANYON_PATH = DATA_VECTORS / "canyons.gpkg"
SEAMOUNT_PATH = DATA_VECTORS / "seamounts.gpkg"
CORAL_PATH = DATA_VECTORS / "cwc_occurrences.gpkg"

# =====================================================================
# Scenario Selection - EDIT THIS TO CHANGE WHICH PROJECTION TO PROCESS
# =====================================================================

SCENARIO = 'ssp585'  # Options: 'ssp126', 'ssp585'
PERIOD = '2041-2060'  # Options: '2041-2060', '2081-2100'

SCENARIOS = ['ssp126', 'ssp585']
PERIODS = {
    'historical': (1951, 2000),
    '2041-2060': (2041, 2060),
    '2081-2100': (2081, 2100),
}

# =====================================================================
# Hazard Bands
# =====================================================================

# Fixed band order for cumulative impact input. Do not reorder: the sign
# rules in seafloor.impact depend on position.
HAZARD_BANDS = ('epc', 'o2', 'ph', 'thetao')

HAZARD_DESCRIPTIONS = {
    'epc': 'Export POC flux to the seafloor',
    'o2': 'Dissolved oxygen concentration',
    'ph': 'Seawater pH',
    'thetao': 'Seafloor potential temperature',
}

# Output band names
IMPACT_BANDS = ('Negative', 'Positive')

# =====================================================================
# Habitat Parameters
# =====================================================================

SHELF_LABEL = 'Shelf'
SLOPE_LABEL = 'Slope'
OUT_OF_RANGE_LABEL = 'OutOfRange'

# Label for each named feature mask
FEATURE_LABELS = {
    'canyon': 'Canyon',
    'seamount': 'Seamount',
    'coral': 'CWC',
}

HABITAT_ORDER = [SHELF_LABEL, SLOPE_LABEL, 'Canyon', 'Seamount', 'CWC']

# Depth magnitude thresholds (meters) for habitat bucketing
SHELF_MAX_DEPTH = 200
SLOPE_MAX_DEPTH = 5000

# Depth magnitude thresholds (meters) for contour line overlays on maps
CONTOUR_DEPTHS = (200, 4000)

# Proximity buffers (map units) for line and point masks
CANYON_BUFFER = 0.1
SEAMOUNT_BUFFER = 0.1
CORAL_BUFFER = 0.05

# =====================================================================
# Climate Index Parameters
# =====================================================================

# Signal-to-noise threshold (standard deviations) for time of emergence
EMERGENCE_THRESHOLD = 2.0

# Spatial gradients below this value (units per km) give no velocity
MIN_GRADIENT = 1e-6

# =====================================================================
# Plotting Parameters
# =====================================================================

# Lower and upper quantiles used to clip map colour scales
COLOR_QUANTILES = (0.01, 0.99)

FIGURE_DPI = 300

# =====================================================================
# Validation
# =====================================================================

def validate_config():
    """Validate configuration settings."""
    if SCENARIO not in SCENARIOS:
        raise ValueError(
            f"Invalid SCENARIO: {SCENARIO}. "
            f"Must be one of: {SCENARIOS}"
        )

    if PERIOD not in PERIODS or PERIOD == 'historical':
        raise ValueError(
            f"Invalid PERIOD: {PERIOD}. "
            f"Must be one of: {[p for p in PERIODS if p != 'historical']}"
        )

    for name, (start, end) in PERIODS.items():
        if start > end:
            raise ValueError(f"Period {name} start ({start}) must be <= end ({end})")

    if len(HAZARD_BANDS) != 4:
        raise ValueError(f"HAZARD_BANDS must have exactly 4 entries")

    if not 0 < SHELF_MAX_DEPTH < SLOPE_MAX_DEPTH:
        raise ValueError(
            f"Depth thresholds must satisfy 0 < SHELF_MAX_DEPTH ({SHELF_MAX_DEPTH}) "
            f"< SLOPE_MAX_DEPTH ({SLOPE_MAX_DEPTH})"
        )

    if list(CONTOUR_DEPTHS) != sorted(CONTOUR_DEPTHS):
        raise ValueError(f"CONTOUR_DEPTHS must be increasing")

    lo, hi = COLOR_QUANTILES
    if not 0 <= lo < hi <= 1:
        raise ValueError(f"COLOR_QUANTILES must satisfy 0 <= lo < hi <= 1")

    if not math.isfinite(EMERGENCE_THRESHOLD) or EMERGENCE_THRESHOLD <= 0:
        raise ValueError(f"EMERGENCE_THRESHOLD must be > 0")

# Run validation on import
validate_config()
