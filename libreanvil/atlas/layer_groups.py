"""
Layer-Group Registry - One render group per map layer.

Groups are created once per layer id when the surface is built and are
destroyed together with it. Attaching and detaching only changes what the
surface shows; children survive until ``clear``.
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from libreanvil.atlas.surface import MapSurface
from libreanvil.data.schemas.models import Layer
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)


class LayerGroupRegistry:
    """
    Registry of layer-id -> group handle for a single surface.
    """

    def __init__(self, surface: MapSurface):
        """
        Initialize the registry.

        Args:
            surface: Surface that owns the group handles
        """
        self._surface = surface
        self._groups: Dict[str, Any] = {}
        self._attached: Set[str] = set()

    @property
    def layer_ids(self) -> List[str]:
        return list(self._groups)

    @property
    def attached_ids(self) -> Set[str]:
        return set(self._attached)

    def __contains__(self, layer_id: str) -> bool:
        return layer_id in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def is_attached(self, layer_id: str) -> bool:
        return layer_id in self._attached

    def build(self, layers: Iterable[Layer]) -> None:
        """
        Create an attached group for every layer.

        Args:
            layers: Layers of the map being initialized
        """
        for layer in layers:
            self._create(layer.id)
            self.attach(layer.id)
        logger.debug(f"Built {len(self._groups)} layer groups")

    def sync(self, layers: Iterable[Layer]) -> None:
        """
        Match the registry to the current layer list.

        Layers added after initialization get a (detached) group; groups
        of deleted layers are detached, cleared and dropped.
        """
        wanted = [layer.id for layer in layers]
        for layer_id in wanted:
            if layer_id not in self._groups:
                self._create(layer_id)

        for layer_id in set(self._groups) - set(wanted):
            self._drop(layer_id)

    def attach(self, layer_id: str) -> bool:
        """
        Show a layer's group. Attaching an attached group is a no-op.

        Returns:
            False if the layer has no group
        """
        group = self._groups.get(layer_id)
        if group is None:
            logger.debug(f"No group for layer {layer_id}")
            return False
        if layer_id not in self._attached:
            self._surface.attach_group(group)
            self._attached.add(layer_id)
        return True

    def detach(self, layer_id: str) -> None:
        group = self._groups.get(layer_id)
        if group is not None and layer_id in self._attached:
            self._surface.detach_group(group)
            self._attached.discard(layer_id)

    def clear(self, layer_id: str) -> None:
        group = self._groups.get(layer_id)
        if group is not None:
            self._surface.clear_group(group)

    def add(self, layer_id: str, primitive: Any) -> Optional[Any]:
        """
        Add a primitive to a layer's group.

        Returns:
            The surface handle, or None if the layer has no group
        """
        group = self._groups.get(layer_id)
        if group is None:
            return None
        return self._surface.add_to_group(group, primitive)

    def destroy(self) -> None:
        """Release every group."""
        for layer_id in list(self._groups):
            self._drop(layer_id)

    def _create(self, layer_id: str) -> None:
        self._groups[layer_id] = self._surface.create_group()

    def _drop(self, layer_id: str) -> None:
        self.detach(layer_id)
        self.clear(layer_id)
        del self._groups[layer_id]
