from typing import Dict, List, Tuple

from PaintMixer.ReflectanceDataset import ReflectanceDataset
from PaintMixer.Utils.CustomTypes import PaintId, PaintSet, PaintSetDefinition
from PaintMixer.Utils.Errors import InputError


def ToPaintSet(definition: PaintSetDefinition, dataset: ReflectanceDataset) -> PaintSet:
    """
    Resolve what the painter selected into the paints a search may use.

    Each brand uses the colors listed for it. A brand with no colors listed falls back to the
    store-bought set, when the definition picks one of that brand.

    Args:
        definition (PaintSetDefinition): the saved selection.
        dataset (ReflectanceDataset): the dataset the numbers refer to.

    Raises:
        InputError: a color is not in the dataset, is of another paint type, or the set ends up empty.
    """
    store_bought = None
    if definition.store_bought_set is not None:
        brand, name = definition.store_bought_set
        store_bought = dataset.store_bought_set(brand, name)
        if store_bought.paint_type != definition.paint_type:
            raise InputError(f"Store-bought set {name!r} is {store_bought.paint_type}, not {definition.paint_type}")

    brands: List[str] = list(definition.brands)
    brands += [b for b in definition.colors if b not in brands]
    if store_bought is not None and store_bought.brand not in brands:
        brands.append(store_bought.brand)

    paints_by_brand: Dict[str, Tuple[PaintId, ...]] = {}
    for brand in brands:
        numbers = definition.colors.get(brand) or []
        if not numbers and store_bought is not None and store_bought.brand == brand:
            numbers = list(store_bought.numbers)
        if not numbers:
            continue
        ids = tuple(sorted({PaintId(brand, int(n)) for n in numbers}))
        for pid in ids:
            if pid not in dataset:
                raise InputError(f"Unknown paint {pid}")
            if dataset[pid].paint_type != definition.paint_type:
                raise InputError(f"Paint {pid} is {dataset[pid].paint_type}, not {definition.paint_type}")
        paints_by_brand[brand] = ids

    if not paints_by_brand:
        raise InputError("The paint set has no colors")
    return PaintSet(paint_type=definition.paint_type, paints_by_brand=paints_by_brand)
