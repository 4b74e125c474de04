import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from PaintMixer.Utils.CustomTypes import PaintMix, PaintSetDefinition
from PaintMixer.Utils.Errors import DataError, PaintMixerError
from PaintMixer.Utils.IO import AtomicWriteJSON

logger = logging.getLogger(__name__)


class PaintStorage(ABC):
    """
    Where the painter's paint set definitions and saved mixes are kept.

    Paint set definitions are keyed by paint type, one per type, and stamped when saved so
    the most recently used one can be restored. Saved mixes are keyed by a caller chosen string.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def save_paint_set(self, definition: PaintSetDefinition) -> PaintSetDefinition:
        stamped = replace(definition, timestamp=self._clock())
        self._put_paint_set(stamped)
        return stamped

    def get_last_paint_set(self) -> Optional[PaintSetDefinition]:
        definitions = self._paint_sets()
        if not definitions:
            return None
        return max(definitions, key=lambda d: d.timestamp)

    def get_paint_set(self, paint_type: str) -> Optional[PaintSetDefinition]:
        for definition in self._paint_sets():
            if definition.paint_type == paint_type:
                return definition
        return None

    @abstractmethod
    def _put_paint_set(self, definition: PaintSetDefinition) -> None:
        pass

    @abstractmethod
    def _paint_sets(self) -> List[PaintSetDefinition]:
        pass

    @abstractmethod
    def save_paint_mix(self, key: str, mix: PaintMix) -> None:
        pass

    @abstractmethod
    def get_paint_mix(self, key: str) -> Optional[PaintMix]:
        pass

    @abstractmethod
    def delete_paint_mix(self, key: str) -> None:
        pass

    @abstractmethod
    def list_paint_mixes(self) -> Dict[str, PaintMix]:
        pass


class InMemoryPaintStorage(PaintStorage):

    def __init__(self, clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self._sets: Dict[str, PaintSetDefinition] = {}
        self._mixes: Dict[str, PaintMix] = {}

    def _put_paint_set(self, definition: PaintSetDefinition) -> None:
        self._sets[definition.paint_type] = definition

    def _paint_sets(self) -> List[PaintSetDefinition]:
        return list(self._sets.values())

    def save_paint_mix(self, key: str, mix: PaintMix) -> None:
        self._mixes[key] = mix

    def get_paint_mix(self, key: str) -> Optional[PaintMix]:
        return self._mixes.get(key)

    def delete_paint_mix(self, key: str) -> None:
        self._mixes.pop(key, None)

    def list_paint_mixes(self) -> Dict[str, PaintMix]:
        return dict(self._mixes)


class JsonPaintStorage(PaintStorage):
    """
    Storage in a single JSON file, rewritten atomically on every change.

    The file looks like {"paint_sets": {type: definition}, "paint_mixes": {key: mix}}.
    """

    def __init__(self, path: Union[str, Path], clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {"paint_sets": {}, "paint_mixes": {}}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataError(f"Cannot read paint storage {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise DataError(f"{self.path} is not a paint storage file")
        data.setdefault("paint_sets", {})
        data.setdefault("paint_mixes", {})
        return data

    def _write(self) -> None:
        AtomicWriteJSON(self.path, self._data)

    def _put_paint_set(self, definition: PaintSetDefinition) -> None:
        with self._lock:
            self._data["paint_sets"][definition.paint_type] = definition.to_dict()
            self._write()

    def _paint_sets(self) -> List[PaintSetDefinition]:
        with self._lock:
            records = list(self._data["paint_sets"].values())
        definitions = []
        for record in records:
            try:
                definitions.append(PaintSetDefinition.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping stored paint set: %r", e)
        return definitions

    def save_paint_mix(self, key: str, mix: PaintMix) -> None:
        with self._lock:
            self._data["paint_mixes"][key] = mix.to_dict()
            self._write()

    def get_paint_mix(self, key: str) -> Optional[PaintMix]:
        with self._lock:
            record = self._data["paint_mixes"].get(key)
        if record is None:
            return None
        return self._mix_from_record(key, record)

    def delete_paint_mix(self, key: str) -> None:
        with self._lock:
            if self._data["paint_mixes"].pop(key, None) is not None:
                self._write()

    def list_paint_mixes(self) -> Dict[str, PaintMix]:
        with self._lock:
            records = dict(self._data["paint_mixes"])
        mixes = {}
        for key, record in records.items():
            try:
                mixes[key] = self._mix_from_record(key, record)
            except DataError as e:
                logger.warning("%s", e)
        return mixes

    @staticmethod
    def _mix_from_record(key: str, record: dict) -> PaintMix:
        try:
            return PaintMix.from_dict(record)
        except (KeyError, TypeError, ValueError, PaintMixerError) as e:
            raise DataError(f"Stored mix {key!r} is invalid: {e}") from e
