"""
Script 03: Climate Indices

Computes time of emergence and climate velocity of each hazard variable from
yearly seafloor projections.

Workflow:
1. Load yearly series (one band per year) for each hazard variable
2. Time of emergence against the historical baseline (2 sd threshold)
3. Climate velocity over the selected period
4. Save rasters and maps

BEFORE RUNNING:
Ensure yearly series exist:
- data/rasters/{SCENARIO}_{band}_yearly.tif (band descriptions are years)

OUTPUT:
- results/tables/{SCENARIO}_{band}_toe.tif
- results/tables/{SCENARIO}_{PERIOD}_{band}_velocity.tif
- results/figures/{SCENARIO}_{band}_toe.png
- results/figures/{SCENARIO}_{PERIOD}_{band}_velocity.png
"""

from seafloor import config
from seafloor.indices import time_of_emergence, climate_velocity
from seafloor.io import read_grid, write_grid
from seafloor.plotting import save_grid_map

print("="*80)
print("SCRIPT 03: Climate Indices")
print("="*80)

print(f"\nScenario: {config.SCENARIO}  Period: {config.PERIOD}")

series_paths = {b: config.DATA_RASTERS / f"{config.SCENARIO}_{b}_yearly.tif"
                for b in config.HAZARD_BANDS}

# Verify input files exist
missing = [p for p in series_paths.values() if not p.exists()]
if missing:
    print("\nERROR: Yearly series not found:")
    for p in missing:
        print(f"  {p}")
    exit(1)

config.RESULTS_TABLES.mkdir(parents=True, exist_ok=True)
config.RESULTS_FIGURES.mkdir(parents=True, exist_ok=True)

bathymetry, crs = read_grid(config.BATHYMETRY_PATH, names=['depth'])
baseline = config.PERIODS['historical']
start, end = config.PERIODS[config.PERIOD]

for step, (band, path) in enumerate(series_paths.items(), start=1):
    print("\n" + "="*80)
    print(f"STEP {step}: {band} ({config.HAZARD_DESCRIPTIONS[band]})")
    print("="*80)

    series, _ = read_grid(path)
    years = [int(n) for n in series.names]
    print(f"Years: {years[0]}-{years[-1]} ({len(years)} bands)")

    toe = time_of_emergence(series, years, threshold=config.EMERGENCE_THRESHOLD,
                            baseline=baseline).mask_outside(bathymetry)
    toe_path = config.RESULTS_TABLES / f"{config.SCENARIO}_{band}_toe.tif"
    write_grid(toe, toe_path, crs=crs)
    save_grid_map(toe, 'toe', config.RESULTS_FIGURES / f"{config.SCENARIO}_{band}_toe.png",
                  depth=bathymetry, cmap='plasma_r',
                  title=f"Time of emergence: {band} ({config.SCENARIO})")

    period = series.select([n for n, y in zip(series.names, years) if start <= y <= end])
    velocity = climate_velocity(period, geographic=crs is None or crs.is_geographic)
    velocity = velocity.mask_outside(bathymetry)
    velocity_path = config.RESULTS_TABLES / f"{config.SCENARIO}_{config.PERIOD}_{band}_velocity.tif"
    write_grid(velocity, velocity_path, crs=crs)
    save_grid_map(velocity, 'velocity',
                  config.RESULTS_FIGURES / f"{config.SCENARIO}_{config.PERIOD}_{band}_velocity.png",
                  depth=bathymetry, cmap='RdBu_r',
                  title=f"Climate velocity (km/yr): {band} ({config.SCENARIO}, {config.PERIOD})")

print("\n" + "="*80)
print("PROCESSING COMPLETE")
print("="*80)
