"""Assemble flat location and asset records into an ``AssetTree``."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, TypeVar

from domain_types import AssetRecord, AssetTree, LocationRecord, TreeNode

__all__ = ["AssetTreeBuilder", "build_tree"]

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", LocationRecord, AssetRecord)

_ASSET_KINDS = frozenset({"asset", "component"})


class AssetTreeBuilder:
    """Incrementally builds the hierarchy for one company.

    Locations are placed once by :meth:`initialize`; asset pages are then
    added with :meth:`merge`. The id lookup table survives between merges so
    a component can hang off an asset that arrived in an earlier page.

    A record whose id is already known is ignored, which makes merging the
    same page twice a no-op. References to ids that are not known (yet) and
    parent chains that loop back on themselves attach the record to the root.
    A parent that only shows up in a later page does not move the orphan.
    """

    def __init__(self) -> None:
        self._tree = AssetTree.empty()
        self._nodes: dict[str, TreeNode] = {}

    @property
    def tree(self) -> AssetTree:
        return self._tree

    def known_ids(self) -> frozenset[str]:
        return frozenset(self._nodes)

    def reset(self) -> AssetTree:
        """Drop the current tree and the lookup table."""

        self._tree = AssetTree.empty()
        self._nodes = {}
        return self._tree

    def initialize(self, locations: Iterable[LocationRecord]) -> AssetTree:
        """Start a new tree holding the full location hierarchy."""

        self.reset()
        records = self._register(
            locations,
            lambda loc: TreeNode(id=loc.id, name=loc.name, kind="location"),
        )
        intended: dict[str, str | None] = {
            loc.id: self._resolve(loc.parent_id, {"location"}, loc.id)
            for loc in records
        }
        self._link(intended)
        logger.debug("Initialized tree with %d locations", len(records))
        return self._tree

    def merge(self, new_assets: Iterable[AssetRecord]) -> AssetTree:
        """Attach one page of asset records to the current tree."""

        records = self._register(new_assets, _asset_node)
        intended: dict[str, str | None] = {}
        for asset in records:
            if asset.parent_id is not None:
                intended[asset.id] = self._resolve(
                    asset.parent_id, _ASSET_KINDS, asset.id
                )
            else:
                intended[asset.id] = self._resolve(
                    asset.location_id, {"location"}, asset.id
                )
        self._link(intended)
        logger.debug(
            "Merged %d assets (%d nodes known)", len(records), len(self._nodes)
        )
        return self._tree

    def _register(
        self,
        records: Iterable[RecordT],
        make_node: Callable[[RecordT], TreeNode],
    ) -> list[RecordT]:
        accepted: list[RecordT] = []
        for record in records:
            if not record.id:
                logger.debug("Skipping record without id: %r", record)
                continue
            if record.id in self._nodes:
                logger.debug("Skipping duplicate id %s", record.id)
                continue
            self._nodes[record.id] = make_node(record)
            accepted.append(record)
        return accepted

    def _resolve(
        self,
        ref: str | None,
        kinds: set[str] | frozenset[str],
        own_id: str,
    ) -> str | None:
        """Return ``ref`` when it names a known node of an allowed kind."""

        if ref is None:
            return None
        target = self._nodes.get(ref)
        if target is None or target.kind not in kinds or ref == own_id:
            logger.debug("Unresolved parent %s for %s, using root", ref, own_id)
            return None
        return ref

    def _link(self, intended: dict[str, str | None]) -> None:
        # Nodes linked in earlier calls have fixed, acyclic parents, so only
        # chains through the current batch can loop.
        for node_id in _cycle_breakers(intended):
            logger.debug("Parent cycle through %s, attaching to root", node_id)
            intended[node_id] = None

        for node_id, parent_id in intended.items():
            parent = self._tree.root if parent_id is None else self._nodes[parent_id]
            parent.children.append(self._nodes[node_id])


def _asset_node(asset: AssetRecord) -> TreeNode:
    return TreeNode(
        id=asset.id,
        name=asset.name,
        kind="component" if asset.is_component else "asset",
        sensor_type=asset.sensor_type,
        status=asset.status,
    )


_ON_PATH = 1
_DONE = 2


def _cycle_breakers(intended: dict[str, str | None]) -> list[str]:
    """Return, per parent loop, the member that comes first in ``intended``.

    Every node is visited once: a walk follows parents until it reaches the
    root, a node outside the batch, or a node seen before. Reaching a node
    still on the current path means the walk closed a loop.
    """

    order = {node_id: index for index, node_id in enumerate(intended)}
    state: dict[str, int] = {}
    breakers: list[str] = []
    for start in intended:
        if start in state:
            continue
        path: list[str] = []
        current = start
        while current is not None and current in intended and current not in state:
            state[current] = _ON_PATH
            path.append(current)
            current = intended[current]
        if current is not None and state.get(current) == _ON_PATH:
            loop = path[path.index(current):]
            breakers.append(min(loop, key=order.__getitem__))
        for node_id in path:
            state[node_id] = _DONE
    return breakers


def build_tree(
    locations: Iterable[LocationRecord],
    assets: Iterable[AssetRecord],
) -> AssetTree:
    """Build a complete tree in one go from unpaginated data."""

    builder = AssetTreeBuilder()
    builder.initialize(locations)
    return builder.merge(assets)
