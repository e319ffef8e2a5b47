from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Literal, Mapping

NodeKind = Literal["root", "location", "asset", "component"]

ROOT_ID = "root"
ROOT_NAME = "Root"


@dataclass(frozen=True)
class Company:
    id: str
    name: str


@dataclass(frozen=True)
class LocationRecord:
    id: str
    name: str
    parent_id: str | None = None


@dataclass(frozen=True)
class AssetRecord:
    id: str
    name: str
    parent_id: str | None = None
    location_id: str | None = None
    sensor_type: str | None = None
    status: str | None = None
    sensor_id: str | None = None
    gateway_id: str | None = None

    @property
    def is_component(self) -> bool:
        return bool(self.sensor_type)


@dataclass
class TreeNode:
    """A location, asset or component placed in the hierarchy."""

    id: str
    name: str
    kind: NodeKind
    sensor_type: str | None = None
    status: str | None = None
    children: list[TreeNode] = field(default_factory=list["TreeNode"])

    def walk(self) -> Iterator[TreeNode]:
        """Yield descendants depth-first, pre-order, excluding ``self``."""

        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass
class AssetTree:
    """Forest of nodes hanging off a synthetic root."""

    root: TreeNode

    @classmethod
    def empty(cls) -> AssetTree:
        return cls(root=TreeNode(id=ROOT_ID, name=ROOT_NAME, kind="root"))

    @property
    def nodes(self) -> list[TreeNode]:
        """Root-level nodes as handed to a renderer."""

        return self.root.children

    def iter_nodes(self) -> Iterator[TreeNode]:
        return self.root.walk()

    def node_count(self) -> int:
        return sum(1 for _ in self.iter_nodes())


def _as_id(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return str(value).strip()


def _as_ref(value: Any) -> str | None:
    ref = _as_id(value)
    return ref or None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def company_from_payload(payload: Mapping[str, Any]) -> Company:
    return Company(
        id=_as_id(payload.get("id")),
        name=str(payload.get("name") or "").strip(),
    )


def location_from_payload(payload: Mapping[str, Any]) -> LocationRecord:
    return LocationRecord(
        id=_as_id(payload.get("id")),
        name=str(payload.get("name") or "").strip(),
        parent_id=_as_ref(payload.get("parentId")),
    )


def asset_from_payload(payload: Mapping[str, Any]) -> AssetRecord:
    return AssetRecord(
        id=_as_id(payload.get("id")),
        name=str(payload.get("name") or "").strip(),
        parent_id=_as_ref(payload.get("parentId")),
        location_id=_as_ref(payload.get("locationId")),
        sensor_type=_as_text(payload.get("sensorType")),
        status=_as_text(payload.get("status")),
        sensor_id=_as_ref(payload.get("sensorId")),
        gateway_id=_as_ref(payload.get("gatewayId")),
    )
