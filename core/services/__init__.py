from .cleanup import clean, coalesce, prune
from .editing import delete_segments, edit_boundaries, remove_code_from_segments
from .regions import RegionToggler
from .selection import SelectionNormalizer
from .toggle import SegmentMutator

__all__ = [
    "clean",
    "coalesce",
    "prune",
    "delete_segments",
    "edit_boundaries",
    "remove_code_from_segments",
    "RegionToggler",
    "SelectionNormalizer",
    "SegmentMutator",
]
