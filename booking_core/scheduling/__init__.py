"""
Scheduling Module Initialization

Exports the entity resolver, conflict detector, assembler and time helpers.
"""

from booking_core.scheduling.assembler import assemble
from booking_core.scheduling.conflicts import ConflictDetector, find_conflict
from booking_core.scheduling.resolver import EntityResolver, ResolvedEntities
from booking_core.scheduling.timeutils import (
    InvalidTimeFormat,
    add_minutes,
    inclusive_day_span,
    to_minutes,
)

__all__ = [
    "ConflictDetector",
    "EntityResolver",
    "InvalidTimeFormat",
    "ResolvedEntities",
    "add_minutes",
    "assemble",
    "find_conflict",
    "inclusive_day_span",
    "to_minutes",
]
