"""
Timeline Visibility Resolver - Which layers are active right now.

Selecting a timeline event shows exactly that event's layers. With no event
selected, or a selection pointing at an event that no longer exists, every
layer is shown: a stale reference must never blank the whole map.
"""

from typing import List, Optional, Sequence, Set

from libreanvil.data.schemas.models import Layer, TimelineEvent
from libreanvil.utils.converters import parse_year


def find_event(events: Sequence[TimelineEvent], event_id: Optional[str]) -> Optional[TimelineEvent]:
    if event_id is None:
        return None
    for event in events:
        if event.id == event_id:
            return event
    return None


def resolve_active_layer_ids(
    layers: Sequence[Layer],
    events: Sequence[TimelineEvent],
    active_event_id: Optional[str]
) -> Set[str]:
    """
    Derive the active layer-id set.

    Args:
        layers: All layers of the map
        events: All timeline events of the map
        active_event_id: Selected event, or None

    Returns:
        The selected event's layer ids (possibly empty), or every layer id
        if nothing valid is selected
    """
    event = find_event(events, active_event_id)
    if event is None:
        return {layer.id for layer in layers}
    return set(event.layer_ids)


def resolve_active_layers(
    layers: Sequence[Layer],
    events: Sequence[TimelineEvent],
    active_event_id: Optional[str]
) -> List[Layer]:
    """Active layers in layer-list order."""
    active_ids = resolve_active_layer_ids(layers, events, active_event_id)
    return [layer for layer in layers if layer.id in active_ids]


def sort_timeline_events(events: Sequence[TimelineEvent]) -> List[TimelineEvent]:
    """Order events by their year label; ties keep their authored order."""
    return sorted(events, key=lambda e: parse_year(e.year))


def default_active_event_id(events: Sequence[TimelineEvent]) -> Optional[str]:
    """The editor opens on the first authored event, if any."""
    return events[0].id if events else None
