"""
Seafloor package for CMIP6 deep-sea climate hazard analysis.

This package contains domain-specific logic organized into:
- config: Configuration parameters and paths
- grid: Regular-lattice raster container
- masks: EEZ, canyon, seamount and coral masks
- habitat: Depth bucketing and habitat tables
- impact: Cumulative negative / positive impact
- indices: Anomalies, time of emergence and climate velocity
- sdm: Species distribution model interface
- plotting: Maps, violin plots and summary statistics
- io: GeoTIFF and vector layer loading
"""

__version__ = "1.0.0"
