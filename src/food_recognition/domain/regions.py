"""Supported regional origins."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class RegionInfo:
    """Declarative region definition."""

    id: str
    name: str
    short_name: str


class Region(Enum):
    """Enum of African regions (single source of truth)."""

    WEST = RegionInfo("west-africa", "West Africa", "West")
    EAST = RegionInfo("east-africa", "East Africa", "East")
    NORTH = RegionInfo("north-africa", "North Africa", "North")
    CENTRAL = RegionInfo("central-africa", "Central Africa", "Central")
    SOUTH = RegionInfo("southern-africa", "Southern Africa", "South")

    @classmethod
    def lookup(cls, raw: str) -> "Region | None":
        """Resolve an id, display name or short name, ignoring case."""
        needle = raw.strip().lower()
        for region in cls:
            info = region.value
            if needle in {
                info.id,
                info.name.lower(),
                info.short_name.lower(),
                f"{info.short_name.lower()} africa",
            }:
                return region
        return None


def region_list() -> list[dict[str, str]]:
    """Return regions formatted for API responses."""
    return [{"id": entry.value.id, "name": entry.value.name} for entry in Region]
