import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt
import pandas as pd
from scipy.signal import savgol_filter
from tqdm import tqdm

from PaintMixer.Observer.Spectra import WAVELENGTHS, ReflectanceSpectrum
from PaintMixer.ReflectanceDataset import ReflectanceDataset
from PaintMixer.Utils.Errors import DataError, PaintMixerError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("brand", "id", "name", "type")
SAMPLE_COLUMN = re.compile(r"^R(\d+(?:\.\d+)?)$")


@dataclass(frozen=True)
class RawMeasurement:
    """
    One paint as measured by the instrument, on the instrument's own wavelengths.

        brand (str): paint brand.
        number (int): manufacturer's color number.
        name (str): color name.
        paint_type (str): watercolor, oil, ...
        wavelengths (Sequence[float]): measured wavelengths in nm.
        samples (Sequence[float]): reflectance at each measured wavelength.
        tinting_strength (Optional[float]): relative tinting strength, None when unknown.
    """
    brand: str
    number: int
    name: str
    paint_type: str
    wavelengths: Sequence[float]
    samples: Sequence[float]
    tinting_strength: Optional[float] = None

    @property
    def key(self) -> str:
        return f"{self.brand}:{self.number}"


def NormalizeSpectrum(raw_samples: npt.ArrayLike, raw_wavelengths: npt.ArrayLike, max_edge_gap: float = 10.0,
                      smooth: bool = False, percent: bool = False) -> ReflectanceSpectrum:
    """
    Resample a measured spectrum onto the 380-730nm grid in 10nm steps.

    Values between measured wavelengths are linearly interpolated. Grid points outside the
    measured range take the closest measured value, but only up to max_edge_gap nm away from it.

    Args:
        raw_samples (npt.ArrayLike): measured reflectance.
        raw_wavelengths (npt.ArrayLike): wavelength of each sample in nm, in any order.
        max_edge_gap (float, optional): how far past the measured range the grid may reach. Defaults to 10.0.
        smooth (bool, optional): apply a Savitzky-Golay filter to the samples first. Defaults to False.
        percent (bool, optional): samples are in percent. Defaults to False.

    Raises:
        DataError: too few samples, mismatched lengths, duplicated or invalid wavelengths,
            non-finite values, or a measured range that does not cover the grid.

    Returns:
        ReflectanceSpectrum: the resampled spectrum, clamped to [0, 1].
    """
    samples = np.asarray(raw_samples, dtype=float).ravel()
    wavelengths = np.asarray(raw_wavelengths, dtype=float).ravel()
    if samples.shape != wavelengths.shape:
        raise DataError(f"Got {len(samples)} samples for {len(wavelengths)} wavelengths")
    if len(samples) < 2:
        raise DataError("At least two samples are needed")
    if not np.all(np.isfinite(samples)) or not np.all(np.isfinite(wavelengths)):
        raise DataError("Samples and wavelengths must be finite numbers")
    if np.any(wavelengths <= 0):
        raise DataError("Wavelengths must be positive")

    order = np.argsort(wavelengths, kind="stable")
    wavelengths, samples = wavelengths[order], samples[order]
    if np.any(np.diff(wavelengths) == 0):
        raise DataError("Duplicate wavelengths in the measurement")

    gap = max(wavelengths[0] - WAVELENGTHS[0], WAVELENGTHS[-1] - wavelengths[-1], 0)
    if gap > max_edge_gap:
        raise DataError(f"Measured range {wavelengths[0]:g}-{wavelengths[-1]:g}nm does not cover "
                        f"{WAVELENGTHS[0]}-{WAVELENGTHS[-1]}nm")

    if percent:
        samples = samples / 100
    if smooth and len(samples) >= 5:
        window = min(11, len(samples) if len(samples) % 2 == 1 else len(samples) - 1)
        samples = savgol_filter(samples, window_length=window, polyorder=min(3, window - 1))

    # np.interp holds the boundary values outside the measured range
    resampled = np.interp(WAVELENGTHS, wavelengths, samples)
    return ReflectanceSpectrum(np.clip(resampled, 0, 1), warn=False)


def LoadRawMeasurements(csv_path: Union[str, Path]) -> List[RawMeasurement]:
    """
    Read an instrument export with one paint per row.

    Columns are brand, id, name, type, optionally tinting_strength, and one R<nm> column per
    measured wavelength, e.g. R400. Empty sample cells are left out of that paint's measurement.

    :raises DataError: the file cannot be read, or a required column or value is missing
    """
    try:
        df = pd.read_csv(csv_path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataError(f"Cannot read measurements {csv_path}: {e}") from e

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataError(f"Measurements are missing column(s): {', '.join(missing)}")
    sample_columns = [c for c in df.columns if SAMPLE_COLUMN.match(str(c))]
    if not sample_columns:
        raise DataError("Measurements have no R<wavelength> columns")
    wavelengths = np.array([float(SAMPLE_COLUMN.match(str(c)).group(1)) for c in sample_columns])

    measurements = []
    for row_number, row in df.iterrows():
        try:
            number = int(row["id"])
        except (TypeError, ValueError):
            raise DataError(f"Row {row_number}: paint id {row['id']!r} is not a number") from None
        values = row[sample_columns].to_numpy(dtype=float)
        present = ~np.isnan(values)
        strength = row["tinting_strength"] if "tinting_strength" in df.columns else None
        try:
            strength = None if pd.isna(strength) else float(strength)
        except (TypeError, ValueError):
            raise DataError(f"Row {row_number}: tinting strength {strength!r} is not a number") from None
        measurements.append(RawMeasurement(brand=str(row["brand"]).strip(),
                                           number=number,
                                           name=str(row["name"]).strip(),
                                           paint_type=str(row["type"]).strip(),
                                           wavelengths=tuple(wavelengths[present]),
                                           samples=tuple(values[present]),
                                           tinting_strength=strength))
    logger.info("Read %d measurements from %s", len(measurements), csv_path)
    return measurements


def CalculateDataset(measurements: Iterable[RawMeasurement], sets: Iterable[Mapping] = (), version: str = "",
                     show_progress: bool = False, **normalize_kwargs) -> ReflectanceDataset:
    """
    Build the reflectance dataset from raw measurements.

    Measurements that cannot be normalized are left out and listed in the dataset's report
    together with records the dataset itself rejects.

    :param normalize_kwargs: passed to NormalizeSpectrum
    """
    measurements = list(measurements)
    records = []
    failed: Dict[str, str] = {}
    for m in tqdm(measurements, desc="Normalizing spectra", disable=not show_progress):
        try:
            spectrum = NormalizeSpectrum(m.samples, m.wavelengths, **normalize_kwargs)
        except PaintMixerError as e:
            failed[m.key] = str(e)
            logger.warning("Skipping measurement %s: %s", m.key, e)
            continue
        record = {"brand": m.brand, "id": m.number, "name": m.name, "type": m.paint_type,
                  "reflectance": spectrum.data.tolist()}
        if m.tinting_strength is not None:
            record["tinting_strength"] = m.tinting_strength
        records.append(record)

    dataset = ReflectanceDataset.from_records(records, sets, version=version)
    dataset.report.skipped.update(failed)
    return dataset
