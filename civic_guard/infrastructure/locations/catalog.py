"""
Location Catalog
Static district -> panchayat -> village hierarchy, loaded once per process.

The source document is a JSON array of districts. Each district carries its
name under either `name` or `district`; every name is trimmed on load.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
DEFAULT_LOCATIONS_PATH = DATA_DIR / "locations.json"


class Panchayat(BaseModel):
    name: str
    villages: List[str] = Field(default_factory=list)


class District(BaseModel):
    name: str
    panchayats: List[Panchayat] = Field(default_factory=list)


class LocationCatalog:
    """Read-only lookup over the location hierarchy"""

    def __init__(self, districts: Optional[List[District]] = None):
        self.districts = districts or []
        self._by_name: Dict[str, District] = {d.name: d for d in self.districts}

    @classmethod
    def from_raw(cls, raw: List[Dict[str, Any]]) -> "LocationCatalog":
        districts = []
        for entry in raw:
            name = (entry.get("name") or entry.get("district") or "").strip()
            if not name:
                continue
            panchayats = [
                Panchayat(
                    name=p["name"].strip(),
                    villages=[v.strip() for v in p.get("villages", [])],
                )
                for p in entry.get("panchayats") or []
            ]
            districts.append(District(name=name, panchayats=panchayats))
        return cls(districts)

    @classmethod
    def from_file(cls, path: Path) -> "LocationCatalog":
        with open(path, encoding="utf-8") as f:
            return cls.from_raw(json.load(f))

    def district_names(self) -> List[str]:
        return sorted(self._by_name)

    def district(self, name: str) -> Optional[District]:
        return self._by_name.get(name)

    def panchayat(self, district: str, panchayat: str) -> Optional[Panchayat]:
        data = self.district(district)
        if not data:
            return None
        return next((p for p in data.panchayats if p.name == panchayat), None)

    def panchayat_names(self, district: str) -> List[str]:
        data = self.district(district)
        return [p.name for p in data.panchayats] if data else []

    def village_names(self, district: str, panchayat: str) -> List[str]:
        data = self.panchayat(district, panchayat)
        return list(data.villages) if data else []

    def villages_in_district(self, district: str) -> List[str]:
        """All villages of a district, de-duplicated, first occurrence wins"""
        data = self.district(district)
        if not data:
            return []
        seen = {}
        for p in data.panchayats:
            for village in p.villages:
                seen.setdefault(village, None)
        return list(seen)

    def village_to_panchayat(self) -> Dict[str, str]:
        lookup: Dict[str, str] = {}
        for d in self.districts:
            for p in d.panchayats:
                for village in p.villages:
                    lookup[village] = p.name
        return lookup

    def __len__(self) -> int:
        return len(self.districts)


_catalog_cache: Dict[str, LocationCatalog] = {}


async def load_location_catalog(source: str = "") -> LocationCatalog:
    """
    Load the catalog from a file path or an http(s) URL, cached per source.

    Any failure is logged and yields an empty catalog so the selectors
    simply come up empty.
    """
    key = source or str(DEFAULT_LOCATIONS_PATH)
    if key in _catalog_cache:
        return _catalog_cache[key]

    try:
        if key.startswith(("http://", "https://")):
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.get(key)
                resp.raise_for_status()
                catalog = LocationCatalog.from_raw(resp.json())
        else:
            catalog = LocationCatalog.from_file(Path(key))
        logger.info(f"Location catalog loaded: {len(catalog)} districts from {key}")
    except Exception as e:
        logger.error(f"Could not load location data from {key}: {e}")
        catalog = LocationCatalog()

    _catalog_cache[key] = catalog
    return catalog
