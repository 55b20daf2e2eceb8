"""
Script 02: Habitat Tables

Partitions cumulative impact and hazard anomalies into seafloor habitats
(Shelf, Slope, Canyon, Seamount, CWC) inside the EEZ.

Workflow:
1. Load bathymetry, impact raster and hazard anomalies
2. Load EEZ, canyon, seamount and coral layers as masks
3. Build the long habitat table
4. Compute summary statistics and violin plots

BEFORE RUNNING:
Ensure script 01 has been run:
- results/tables/{SCENARIO}_{PERIOD}_impact.tif

OUTPUT:
- results/tables/{SCENARIO}_{PERIOD}_habitat.parquet
- results/figures/{SCENARIO}_{PERIOD}_habitat_summary.txt
- results/figures/{SCENARIO}_{PERIOD}_habitat_violins.png

Then run: python scripts/03_climate_indices.py
"""

from seafloor import config
from seafloor.grid import stack
from seafloor.habitat import mask_habitat
from seafloor.io import read_grid, read_masks, write_table
from seafloor.plotting import plot_habitat_violins, save_summary_statistics

print("="*80)
print("SCRIPT 02: Habitat Tables")
print("="*80)

print(f"\nScenario: {config.SCENARIO}  Period: {config.PERIOD}")

tag = f"{config.SCENARIO}_{config.PERIOD}"
impact_path = config.RESULTS_TABLES / f"{tag}_impact.tif"
hazard_paths = [config.DATA_RASTERS / f"{tag}_{band}_anomaly.tif" for band in config.HAZARD_BANDS]

# Verify input files exist
if not impact_path.exists():
    print(f"\nERROR: Impact raster not found: {impact_path}")
    print("Please run scripts/01_cumulative_impact.py first")
    exit(1)

if not config.EEZ_PATH.exists():
    print(f"\nERROR: EEZ layer not found: {config.EEZ_PATH}")
    exit(1)

# Step 1: Load rasters
print("\n" + "="*80)
print("STEP 1: Loading Rasters")
print("="*80)

bathymetry, crs = read_grid(config.BATHYMETRY_PATH, names=['depth'])
impact, _ = read_grid(impact_path, names=list(config.IMPACT_BANDS))
anomalies = [read_grid(p, names=[b])[0] for b, p in zip(config.HAZARD_BANDS, hazard_paths)]

layers = stack([bathymetry, impact] + anomalies)
print(f"Bands: {', '.join(layers.names)}")

# Step 2: Load masks
print("\n" + "="*80)
print("STEP 2: Loading Masks")
print("="*80)

masks = read_masks(crs=crs)
for name, mask in masks.items():
    print(f"  {mask}")

# Step 3: Habitat table
print("\n" + "="*80)
print("STEP 3: Building Habitat Table")
print("="*80)

table = mask_habitat(layers, 'depth', masks,
                     shelf_max=config.SHELF_MAX_DEPTH, slope_max=config.SLOPE_MAX_DEPTH,
                     on_empty='skip')

print(f"Rows: {len(table):,}")
for habitat, n in table.drop_duplicates(['x', 'y', 'habitat'])['habitat'].value_counts().items():
    print(f"  {habitat}: {n:,} cells")

if table.empty:
    print("\nERROR: No cells selected for any habitat")
    exit(1)

table_path = config.RESULTS_TABLES / f"{tag}_habitat.parquet"
write_table(table, table_path)

# Step 4: Statistics and figures
print("\n" + "="*80)
print("STEP 4: Statistics and Figures")
print("="*80)

config.RESULTS_FIGURES.mkdir(parents=True, exist_ok=True)
save_summary_statistics(table, config.RESULTS_FIGURES / f"{tag}_habitat_summary.txt",
                        f"{config.SCENARIO} {config.PERIOD}")
plot_habitat_violins(table, config.RESULTS_FIGURES / f"{tag}_habitat_violins.png",
                     title=f"Seafloor hazards by habitat ({config.SCENARIO}, {config.PERIOD})")

print("\n" + "="*80)
print("PROCESSING COMPLETE")
print("="*80)
print(f"Habitat table: {table_path}")
print("\nNext step: python scripts/03_climate_indices.py")
print("="*80)
