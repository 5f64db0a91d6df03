"""
Read-only index over JMA's administrative area hierarchy (area.json).

The document has five top-level maps keyed by code:
centers, offices, class10s, class15s, class20s.
Municipalities chain up as class20 -> class15 -> class10 -> office.
"""
import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Union

from .config import Settings
from .errors import DataUnavailable
from .schemas import AREA_LEVELS, AreaEntry
from .utils import logger

PathLike = Union[str, Path]

# class20 -> class15 -> class10 -> office
_PARENT_LEVEL = {
    "class20s": "class15s",
    "class15s": "class10s",
    "class10s": "offices",
}


class CityAncestry(NamedTuple):
    city: AreaEntry
    class10: AreaEntry
    office: AreaEntry


class AreaHierarchyIndex:
    def __init__(self, levels: Dict[str, Dict[str, AreaEntry]]):
        self._levels: Mapping[str, Mapping[str, AreaEntry]] = MappingProxyType(
            {lvl: MappingProxyType(dict(levels.get(lvl) or {})) for lvl in AREA_LEVELS}
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AreaHierarchyIndex":
        if not isinstance(raw, dict):
            raise ValueError("area.json root must be an object")
        if not isinstance(raw.get("offices"), dict) or not isinstance(raw.get("class20s"), dict):
            raise ValueError("area.json must contain 'offices' and 'class20s' maps")

        levels: Dict[str, Dict[str, AreaEntry]] = {}
        for lvl in AREA_LEVELS:
            rows = raw.get(lvl)
            if not isinstance(rows, dict):
                rows = {}
            entries: Dict[str, AreaEntry] = {}
            # dict order == document order; plain city search depends on it
            for code, info in rows.items():
                if not isinstance(info, dict) or not info.get("name"):
                    continue
                entries[str(code)] = AreaEntry.model_validate({**info, "code": str(code)})
            levels[lvl] = entries
        return cls(levels)

    # ---------- lookups ----------
    def lookup(self, level: str, code: str) -> Optional[AreaEntry]:
        return self._levels[level].get(code)

    def iter_level(self, level: str) -> Iterator[AreaEntry]:
        return iter(self._levels[level].values())

    def size(self, level: str) -> int:
        return len(self._levels[level])

    def city_ancestry(self, city_code: str) -> Optional[CityAncestry]:
        """
        Walk class20 -> class15 -> class10 -> office.
        Returns None when any link is missing (entry is then unresolvable).
        """
        city = self.lookup("class20s", city_code)
        if city is None:
            return None
        chain: List[AreaEntry] = [city]
        level = "class20s"
        while level in _PARENT_LEVEL:
            parent_code = chain[-1].parent
            level = _PARENT_LEVEL[level]
            parent = self.lookup(level, parent_code) if parent_code else None
            if parent is None:
                return None
            chain.append(parent)
        # chain == [class20, class15, class10, office]
        return CityAncestry(city=chain[0], class10=chain[2], office=chain[3])


class AreaIndexLoad(NamedTuple):
    """Outcome of the one-shot startup load: exactly one of index / error is set."""
    index: Optional[AreaHierarchyIndex]
    error: Optional[DataUnavailable]

    @property
    def ok(self) -> bool:
        return self.index is not None


def default_area_paths(settings: Settings) -> List[Path]:
    paths: List[Path] = []
    if settings.area_json_path:
        paths.append(Path(settings.area_json_path).expanduser())
    paths.append(Path(__file__).resolve().parent / "data" / "area.json")
    paths.append(Path.cwd() / "data" / "area.json")
    paths.append(Path.cwd() / "area.json")
    return paths


def load_area_index(paths: Sequence[PathLike]) -> AreaIndexLoad:
    """
    Try each candidate path in order; the first readable, well-formed one wins.
    Never raises: failure is returned as DataUnavailable so every later
    resolution can report it.
    """
    attempted: List[str] = []
    last_reason: Optional[str] = None

    for p in paths:
        path = Path(p)
        attempted.append(str(path))
        if not path.is_file():
            continue
        try:
            with path.open(encoding="utf-8") as f:
                raw = json.load(f)
            index = AreaHierarchyIndex.from_dict(raw)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError and pydantic's ValidationError are ValueErrors
            last_reason = f"{path.name}: {e}"
            logger.warning("area_index_parse_error", extra={"path": str(path), "error": str(e)})
            continue

        logger.info(
            "area_index_loaded",
            extra={
                "path": str(path),
                "offices": index.size("offices"),
                "class10s": index.size("class10s"),
                "class20s": index.size("class20s"),
            },
        )
        return AreaIndexLoad(index=index, error=None)

    err = DataUnavailable(attempted, reason=last_reason)
    logger.error("area_index_unavailable", extra={"attempted": attempted, "reason": last_reason})
    return AreaIndexLoad(index=None, error=err)


def load_area_index_from_dict(raw: Dict[str, Any]) -> AreaIndexLoad:
    try:
        return AreaIndexLoad(index=AreaHierarchyIndex.from_dict(raw), error=None)
    except ValueError as e:
        return AreaIndexLoad(index=None, error=DataUnavailable(["<in-memory>"], reason=str(e)))
