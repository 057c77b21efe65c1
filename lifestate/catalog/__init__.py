"""
Event Catalog
=============

Read-only lookup table: event type id -> EventSpec.

The table is declarative data (event_specs.json), loaded once per
process and exposed through a read-only mapping. There is no runtime
mutation and no class hierarchy: dispatch is a dictionary lookup.
"""

from __future__ import annotations
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple
import json

from ..contracts.base import UnknownEventTypeError
from ..contracts.events import Event, EventSpec

CATALOG_RESOURCE = "event_specs.json"


class EventCatalog(Mapping[str, EventSpec]):
    """Immutable mapping of event type ids to specs."""

    def __init__(self, specs: Mapping[str, EventSpec]):
        self._specs = MappingProxyType(dict(specs))

    def __getitem__(self, event_type: str) -> EventSpec:
        try:
            return self._specs[event_type]
        except KeyError:
            raise UnknownEventTypeError(
                f"Unknown event type: {event_type!r}", event_type=event_type
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def event_types(self) -> Tuple[str, ...]:
        return tuple(sorted(self._specs))

    def spec_for(self, event: Event) -> EventSpec:
        """Spec of an event: its custom spec, else the catalog entry."""
        if event.custom_spec is not None:
            return event.custom_spec
        if event.event_type is None:
            raise UnknownEventTypeError(
                "Event has neither an event type nor a custom spec",
                event_id=event.event_id,
            )
        return self[event.event_type]

    @staticmethod
    def from_json(text: str) -> 'EventCatalog':
        raw = json.loads(text)
        return EventCatalog({
            name: EventSpec.from_mapping(
                impact=entry['impact'],
                chronic=entry.get('chronic'),
                permanence=entry.get('permanence'),
            )
            for name, entry in raw.items()
        })


def display_name(event_type: str) -> str:
    """'lose_job_fired' -> 'Lose Job (Fired)'."""
    words = event_type.split('_')
    if len(words) < 2:
        return event_type.title()
    head = ' '.join(w.capitalize() for w in words[:-1])
    return f"{head} ({words[-1].capitalize()})"


@lru_cache(maxsize=1)
def default_catalog() -> EventCatalog:
    """The bundled catalog, parsed once per process."""
    text = resources.files(__name__).joinpath(CATALOG_RESOURCE).read_text(encoding='utf-8')
    return EventCatalog.from_json(text)


__all__ = [
    'EventCatalog',
    'default_catalog',
    'display_name',
]
