"""Reference geography: district -> panchayat -> village, and village polygons"""
from .catalog import LocationCatalog, District, Panchayat, load_location_catalog
from .boundaries import VillageBoundaries, load_village_boundaries

__all__ = [
    "LocationCatalog",
    "District",
    "Panchayat",
    "load_location_catalog",
    "VillageBoundaries",
    "load_village_boundaries",
]
