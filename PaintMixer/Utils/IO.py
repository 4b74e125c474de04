import json
import os
from pathlib import Path
from typing import Union

import numpy as np

from PaintMixer.Observer.Spectra import WAVELENGTHS
from PaintMixer.ReflectanceDataset import PaintToRecord, ReflectanceDataset
from PaintMixer.Utils.Errors import DataError

DATASET_FORMAT = 1


def AtomicWriteJSON(path: Union[str, Path], data) -> None:
    """Write JSON to a temporary file next to the destination, then rename it over the destination."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_suffix(path.suffix + '.tmp')
    with open(temp_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write('\n')
    os.replace(temp_file, path)


def LoadDataset(path: Union[str, Path]) -> ReflectanceDataset:
    """
    Load the reflectance dataset artifact.
    Paints with bad entries are skipped and listed in the dataset's report.

    Args:
        path (Union[str, Path]): the JSON artifact written by SaveDataset

    Raises:
        DataError: the file cannot be read, is not a dataset, or uses another wavelength grid.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataError(f"Cannot read dataset {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("paints"), list):
        raise DataError(f"{path} is not a reflectance dataset")
    if data.get("format", DATASET_FORMAT) != DATASET_FORMAT:
        raise DataError(f"Unsupported dataset format {data.get('format')}")
    wavelengths = data.get("wavelengths")
    if wavelengths is not None:
        try:
            grid = np.asarray(wavelengths, dtype=float)
        except (TypeError, ValueError):
            grid = None
        if grid is None or grid.shape != WAVELENGTHS.shape or not np.allclose(grid, WAVELENGTHS, rtol=0, atol=1e-6):
            raise DataError("Dataset wavelengths must be 380nm to 730nm in 10nm steps")

    return ReflectanceDataset.from_records(data["paints"], data.get("sets", []), version=str(data.get("version", "")))


def SaveDataset(path: Union[str, Path], dataset: ReflectanceDataset, precision: int = 4) -> None:
    """
    Write the dataset artifact: paints sorted by type, brand and number with reflectances
    rounded to a fixed precision, so updates diff cleanly.
    """
    paints = sorted(dataset, key=lambda p: (p.paint_type, p.id))
    data = {
        "format": DATASET_FORMAT,
        "version": dataset.version,
        "wavelengths": WAVELENGTHS.tolist(),
        "paints": [PaintToRecord(p, precision) for p in paints],
        "sets": [{"brand": s.brand, "name": s.name, "type": s.paint_type, "ids": list(s.numbers)}
                 for s in dataset.store_bought_sets()],
    }
    AtomicWriteJSON(path, data)
