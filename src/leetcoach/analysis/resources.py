"""
Learning resource catalog and selection.

The catalog is a static JSON file mapping a resource tag to a list of
``{type, link, description}`` entries. Selection scores every tag raised by
the focus areas and side insights and picks at most four resources.
"""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from leetcoach.analysis.models import (
    ImprovementArea,
    Resource,
    SelectedResource,
    SideSpecificInsights,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "assets" / "resources.json"

MAX_RESOURCES = 4
FOCUS_TAG_WEIGHT = 3
SIDE_TAG_WEIGHT = 2

# Broad tags outrank narrow ones
TAG_PRIORITY = MappingProxyType(
    {
        "clutch_fundamentals": 10,
        "ct_fundamentals": 10,
        "t_fundamentals": 10,
        "aim_accuracy": 9,
        "crosshair_placement": 9,
        "ct_positioning": 8,
        "t_positioning": 8,
        "ct_angles": 7,
        "t_entry": 7,
        "pop_flashes": 6,
        "spray_control": 6,
        "counter_strafing": 6,
        "clutch_utility": 5,
        "1v1_clutch": 4,
        "flash_timing": 4,
        "trade_positioning": 4,
    }
)

# Roots that may appear more than once in a selection
REPEATABLE_ROOTS = frozenset({"ct", "t", "aim", "flash"})

PREFERRED_TYPES = ("youtube", "website")

TYPE_EMOJI = {"youtube": "🎥", "website": "🌐", "workshop": "🗺️"}


@dataclass(frozen=True)
class ResourceCatalog:
    """Read-only tag -> resources mapping."""

    entries: Mapping[str, tuple[Resource, ...]]

    def get(self, tag: str) -> tuple[Resource, ...]:
        return self.entries.get(tag, ())

    def __contains__(self, tag: str) -> bool:
        return tag in self.entries

    @classmethod
    def from_dict(cls, data: Mapping[str, Iterable[Mapping]]) -> "ResourceCatalog":
        entries = {}
        for tag, items in data.items():
            entries[tag] = tuple(
                Resource(
                    type=str(item.get("type", "")),
                    link=str(item["link"]),
                    description=item.get("description"),
                )
                for item in items
                if item.get("link")
            )
        return cls(MappingProxyType(entries))

    @classmethod
    def load(cls, path: Path | None = None) -> "ResourceCatalog":
        """
        Load a catalog from JSON, the packaged one when ``path`` is None.

        Callers load once at startup and pass the instance to build_report().
        """
        path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.debug(f"Loaded {len(catalog.entries)} resource tags from {path}")
        return catalog


def tag_title(tag: str) -> str:
    """``"1v1_clutch"`` -> ``"1v1 Clutch"``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), tag.replace("_", " "))


def rank_tags(
    focus_areas: Iterable[ImprovementArea], side_insights: SideSpecificInsights
) -> list[str]:
    """Order tags by weighted count plus static priority; ties keep first-seen order."""
    counts: dict[str, int] = {}
    for area in focus_areas:
        for tag in area.resource_tags:
            counts[tag] = counts.get(tag, 0) + FOCUS_TAG_WEIGHT
    for tag in (*side_insights.ct_resource_tags, *side_insights.t_resource_tags):
        counts[tag] = counts.get(tag, 0) + SIDE_TAG_WEIGHT

    return sorted(counts, key=lambda tag: counts[tag] + TAG_PRIORITY.get(tag, 0), reverse=True)


def _pick(candidates: tuple[Resource, ...], used_links: set[str]) -> Resource | None:
    unused = [r for r in candidates if r.link not in used_links]
    for resource in unused:
        if resource.type in PREFERRED_TYPES:
            return resource
    return unused[0] if unused else None


def select_resources(
    focus_areas: Iterable[ImprovementArea],
    side_insights: SideSpecificInsights,
    catalog: ResourceCatalog,
) -> tuple[SelectedResource, ...]:
    """
    Pick up to four learning resources for a report.

    A tag is skipped when another tag with the same root (text before the
    first underscore) was already used, unless the root is repeatable.
    """
    selected: list[SelectedResource] = []
    used_links: set[str] = set()
    used_roots: set[str] = set()

    for tag in rank_tags(focus_areas, side_insights):
        if len(selected) >= MAX_RESOURCES:
            break

        candidates = catalog.get(tag)
        if not candidates:
            continue

        root = tag.split("_")[0]
        if root in used_roots and root not in REPEATABLE_ROOTS:
            continue

        resource = _pick(candidates, used_links)
        if resource is None:
            continue

        selected.append(
            SelectedResource(
                title=tag_title(tag),
                link=resource.link,
                emoji=TYPE_EMOJI.get(resource.type, "📖"),
                description=resource.description or "Practice resource",
            )
        )
        used_links.add(resource.link)
        used_roots.add(root)

    return tuple(selected)
