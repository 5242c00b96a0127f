"""Village boundary polygons (GeoJSON) used only to draw map areas"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .catalog import DATA_DIR

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARIES_PATH = DATA_DIR / "village_boundaries.json"


class VillageBoundaries:
    """Village name -> GeoJSON geometry"""

    def __init__(self, geometries: Optional[Dict[str, Dict[str, Any]]] = None):
        self.geometries = geometries or {}

    @classmethod
    def from_feature_collection(cls, collection: Dict[str, Any]) -> "VillageBoundaries":
        geometries = {}
        for feature in collection.get("features", []):
            name = (feature.get("properties") or {}).get("name", "").strip()
            if name and feature.get("geometry"):
                geometries[name] = feature["geometry"]
        return cls(geometries)

    def polygon(self, village: str) -> Optional[Dict[str, Any]]:
        return self.geometries.get(village)

    def village_names(self) -> List[str]:
        return list(self.geometries)

    def items(self):
        return self.geometries.items()

    def keys(self):
        return self.geometries.keys()

    def __getitem__(self, village: str) -> Dict[str, Any]:
        return self.geometries[village]

    def __len__(self) -> int:
        return len(self.geometries)


_boundaries_cache: Dict[str, VillageBoundaries] = {}


def load_village_boundaries(path: str = "") -> VillageBoundaries:
    key = path or str(DEFAULT_BOUNDARIES_PATH)
    if key not in _boundaries_cache:
        try:
            with open(Path(key), encoding="utf-8") as f:
                boundaries = VillageBoundaries.from_feature_collection(json.load(f))
            logger.info(f"Village boundaries loaded: {len(boundaries)} polygons")
        except Exception as e:
            logger.error(f"Could not load village boundaries from {key}: {e}")
            boundaries = VillageBoundaries()
        _boundaries_cache[key] = boundaries
    return _boundaries_cache[key]
