import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from PaintMixer.Observer.Spectra import ReflectanceSpectrum
from PaintMixer.Utils.CustomTypes import DatasetReport, Paint, PaintId, StoreBoughtPaintSet
from PaintMixer.Utils.Errors import DataError, InputError, PaintMixerError

logger = logging.getLogger(__name__)


def PaintFromRecord(record: Mapping) -> Paint:
    """
    Build a Paint from a dataset record.

    :param record: mapping with brand, id, name, type, reflectance and optionally tinting_strength
    :raises DataError: when a field is missing or out of range
    """
    try:
        paint_id = PaintId(str(record["brand"]), int(record["id"]))
        reflectance = record["reflectance"]
        values = [float(v) for v in reflectance]
    except (KeyError, TypeError, ValueError) as e:
        raise DataError(f"Malformed paint record: {e!r}") from e
    if not paint_id.brand:
        raise DataError("Paint record has an empty brand")
    if any(v < 0 or v > 1 for v in values):
        raise DataError(f"Reflectance of {paint_id} is outside [0, 1]")
    strength = record.get("tinting_strength")
    try:
        return Paint(id=paint_id,
                     name=str(record.get("name", "")),
                     spectrum=ReflectanceSpectrum(values),
                     paint_type=str(record.get("type", "watercolor")),
                     tinting_strength=float(strength) if strength is not None else None)
    except (InputError, TypeError, ValueError) as e:
        raise DataError(f"Invalid paint {paint_id}: {e}") from e


def PaintToRecord(paint: Paint, precision: int = 4) -> dict:
    record = {
        "brand": paint.id.brand,
        "id": paint.id.number,
        "name": paint.name,
        "type": paint.paint_type,
        "reflectance": [round(float(v), precision) for v in paint.spectrum.data],
    }
    if paint.tinting_strength is not None:
        record["tinting_strength"] = round(paint.tinting_strength, precision)
    return record


class ReflectanceDataset:
    """
    Read-only collection of paints and their measured reflectance spectra.

    A dataset is built once and handed to every component that needs spectra; it is never
    modified afterwards, so it can be shared between concurrent searches without locking.
    Paints that fail validation are left out and listed in `report`.
    """

    def __init__(self, paints: Iterable[Paint], store_bought_sets: Iterable[StoreBoughtPaintSet] = (),
                 version: str = "", report: Optional[DatasetReport] = None):
        by_id: Dict[PaintId, Paint] = {}
        for paint in sorted(paints, key=lambda p: p.id):
            if paint.id in by_id:
                raise DataError(f"Duplicate paint id {paint.id}")
            by_id[paint.id] = paint
        self._paints: Mapping[PaintId, Paint] = MappingProxyType(by_id)
        self._sets: Tuple[StoreBoughtPaintSet, ...] = tuple(
            sorted(store_bought_sets, key=lambda s: (s.paint_type, s.brand, s.name)))
        self.version = version
        self.report = report if report is not None else DatasetReport(loaded=len(by_id))

    @staticmethod
    def from_records(records: Iterable[Mapping], sets: Iterable[Mapping] = (), version: str = "") -> "ReflectanceDataset":
        """
        Build a dataset from raw records, skipping the bad ones.

        Args:
            records (Iterable[Mapping]): paint records, see PaintFromRecord.
            sets (Iterable[Mapping], optional): store-bought sets with brand, name, type and ids. Defaults to ().
            version (str, optional): dataset version. Defaults to "".

        Returns:
            ReflectanceDataset: the dataset, with the skipped records listed in its report.
        """
        report = DatasetReport()
        paints: Dict[PaintId, Paint] = {}
        for index, record in enumerate(records):
            key = _RecordKey(record, index)
            try:
                paint = PaintFromRecord(record)
                if paint.id in paints:
                    raise DataError(f"Duplicate paint id {paint.id}")
            except PaintMixerError as e:
                report.skipped[key] = str(e)
                logger.warning("Skipping paint %s: %s", key, e)
                continue
            paints[paint.id] = paint
        report.loaded = len(paints)

        store_bought: List[StoreBoughtPaintSet] = []
        for index, record in enumerate(sets):
            key = _SetKey(record, index)
            try:
                store_bought.append(StoreBoughtPaintSet(brand=str(record["brand"]), name=str(record["name"]),
                                                        paint_type=str(record.get("type", "watercolor")),
                                                        numbers=tuple(int(n) for n in record["ids"])))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping store-bought set %s: %r", key, e)
                report.skipped[key] = f"Malformed set record: {e!r}"

        if report.skipped:
            logger.warning("Loaded %d paints, skipped %d entries", report.loaded, len(report.skipped))
        else:
            logger.info("Loaded %d paints", report.loaded)
        return ReflectanceDataset(paints.values(), store_bought, version=version, report=report)

    @property
    def paints(self) -> Mapping[PaintId, Paint]:
        return self._paints

    @property
    def paint_ids(self) -> Tuple[PaintId, ...]:
        return tuple(self._paints.keys())

    def get_paints(self, paint_ids: Iterable[PaintId]) -> List[Paint]:
        """
        The paints with the given ids, in id order and without duplicates.

        :raises InputError: when no ids are given or an id is not in the dataset
        """
        ids = sorted(set(PaintId.parse(p) for p in paint_ids))
        if not ids:
            raise InputError("The paint pool is empty")
        unknown = [p for p in ids if p not in self._paints]
        if unknown:
            raise InputError(f"Unknown paint id(s): {', '.join(str(p) for p in unknown)}")
        return [self._paints[p] for p in ids]

    def paint_types(self) -> List[str]:
        return sorted({p.paint_type for p in self._paints.values()})

    def brands(self, paint_type: Optional[str] = None) -> List[str]:
        return sorted({p.id.brand for p in self._paints.values()
                       if paint_type is None or p.paint_type == paint_type})

    def paints_by_brand(self, paint_type: str, brands: Optional[Sequence[str]] = None) -> Dict[str, List[Paint]]:
        grouped: Dict[str, List[Paint]] = {}
        for paint in self._paints.values():
            if paint.paint_type != paint_type or (brands is not None and paint.id.brand not in brands):
                continue
            grouped.setdefault(paint.id.brand, []).append(paint)
        return grouped

    def store_bought_sets(self, paint_type: Optional[str] = None,
                          brands: Optional[Sequence[str]] = None) -> List[StoreBoughtPaintSet]:
        return [s for s in self._sets
                if (paint_type is None or s.paint_type == paint_type) and (brands is None or s.brand in brands)]

    def store_bought_set(self, brand: str, name: str) -> StoreBoughtPaintSet:
        for s in self._sets:
            if s.brand == brand and s.name == name:
                return s
        raise InputError(f"Unknown store-bought set {name!r} of brand {brand!r}")

    def __getitem__(self, paint_id: PaintId) -> Paint:
        return self._paints[PaintId.parse(paint_id)]

    def __contains__(self, paint_id) -> bool:
        try:
            return PaintId.parse(paint_id) in self._paints
        except InputError:
            return False

    def __iter__(self) -> Iterator[Paint]:
        return iter(self._paints.values())

    def __len__(self) -> int:
        return len(self._paints)

    def __repr__(self) -> str:
        return f"ReflectanceDataset(version={self.version!r}, paints={len(self)})"


def _RecordKey(record: Mapping, index: int) -> str:
    if isinstance(record, Mapping) and "brand" in record and "id" in record:
        return f"{record['brand']}:{record['id']}"
    return f"#{index}"


def _SetKey(record: Mapping, index: int) -> str:
    if isinstance(record, Mapping) and "name" in record:
        return f"set:{record['name']}"
    return f"set:#{index}"
