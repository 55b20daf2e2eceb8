"""
Script 01: Cumulative Impact

Combines the four seafloor hazard anomalies of the selected scenario and
period into negative and positive cumulative impact.

Workflow:
1. Load bathymetry and the four hazard anomaly rasters
2. Stack the hazards in the fixed order (epc, o2, ph, thetao)
3. Compute negative / positive cumulative impact masked to bathymetry
4. Save the impact raster and maps

BEFORE RUNNING:
Ensure the dataset exists:
- data/rasters/bathymetry.tif
- data/rasters/{SCENARIO}_{PERIOD}_{band}_anomaly.tif for each hazard band

OUTPUT:
- results/tables/{SCENARIO}_{PERIOD}_impact.tif
- results/figures/{SCENARIO}_{PERIOD}_impact_{Negative,Positive}.png

Then run: python scripts/02_habitat_tables.py
"""

import numpy as np

from seafloor import config
from seafloor.impact import cumulative_impact
from seafloor.indices import hazard_grid
from seafloor.io import read_grid, write_grid
from seafloor.plotting import save_grid_map

print("="*80)
print("SCRIPT 01: Cumulative Impact")
print("="*80)

print(f"\nScenario: {config.SCENARIO}  Period: {config.PERIOD}")

tag = f"{config.SCENARIO}_{config.PERIOD}"
hazard_paths = [config.DATA_RASTERS / f"{tag}_{band}_anomaly.tif" for band in config.HAZARD_BANDS]

# Verify input files exist
missing = [p for p in [config.BATHYMETRY_PATH] + hazard_paths if not p.exists()]
if missing:
    print("\nERROR: Input rasters not found:")
    for p in missing:
        print(f"  {p}")
    exit(1)

config.RESULTS_TABLES.mkdir(parents=True, exist_ok=True)
config.RESULTS_FIGURES.mkdir(parents=True, exist_ok=True)

# Step 1: Load rasters
print("\n" + "="*80)
print("STEP 1: Loading Rasters")
print("="*80)

bathymetry, crs = read_grid(config.BATHYMETRY_PATH, names=['depth'])
anomalies = []
for band, path in zip(config.HAZARD_BANDS, hazard_paths):
    print(f"  {band}: {config.HAZARD_DESCRIPTIONS[band]}")
    grid, _ = read_grid(path, names=[band])
    anomalies.append(grid)

# Step 2: Stack hazards
print("\n" + "="*80)
print("STEP 2: Stacking Hazards")
print("="*80)

hazards = hazard_grid(*anomalies)
print(f"Hazard bands: {', '.join(hazards.names)}")

# Step 3: Cumulative impact
print("\n" + "="*80)
print("STEP 3: Computing Cumulative Impact")
print("="*80)

impact = cumulative_impact(hazards, footprint=bathymetry)
for band in impact.names:
    values = impact.band(band)
    print(f"  {band}: mean={np.nanmean(values):.3f} max={np.nanmax(values):.3f}")

# Step 4: Save results
print("\n" + "="*80)
print("STEP 4: Saving Results")
print("="*80)

impact_path = config.RESULTS_TABLES / f"{tag}_impact.tif"
write_grid(impact, impact_path, crs=crs)

for band in impact.names:
    save_grid_map(impact, band, config.RESULTS_FIGURES / f"{tag}_impact_{band}.png",
                  depth=bathymetry, cmap='magma' if band == 'Negative' else 'viridis',
                  title=f"{band} impact ({config.SCENARIO}, {config.PERIOD})")

print("\n" + "="*80)
print("PROCESSING COMPLETE")
print("="*80)
print(f"Impact raster: {impact_path}")
print("\nNext step: python scripts/02_habitat_tables.py")
print("="*80)
