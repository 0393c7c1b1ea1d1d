"""
Visual handles for chart markers.

Markers never draw directly: each one owns a Group on a canvas and sets
attributes on the shapes inside it. The default SceneCanvas keeps the
scene in memory (headless, serialisable for the HTTP surface); any object
with the same `group` / `release` / `to_dict` methods can be injected
into the engine instead.

Attribute changes carry the transition duration they were issued with.
Transitions are fire-and-forget: a later `set` simply overwrites the
target attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol


@dataclass(eq=False)
class Shape:
    kind: str
    cls: str = ""
    attrs: Dict[str, Any] = field(default_factory=dict)
    visible: bool = True
    duration: int = 0

    @property
    def classes(self) -> List[str]:
        return self.cls.split()

    def set(self, duration: int = 0, **attrs: Any) -> "Shape":
        self.attrs.update(attrs)
        self.duration = duration
        return self

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "cls": self.cls,
            "visible": self.visible,
            "duration": self.duration,
            "attrs": dict(self.attrs),
        }


@dataclass(eq=False)
class Group(Shape):
    kind: str = "g"
    children: List[Shape] = field(default_factory=list)

    def append(self, kind: str, cls: str = "", **attrs: Any) -> Shape:
        shape = Shape(kind=kind, cls=cls, attrs=dict(attrs))
        self.children.append(shape)
        return shape

    def add_group(self, cls: str = "", **attrs: Any) -> "Group":
        group = Group(cls=cls, attrs=dict(attrs))
        self.children.append(group)
        return group

    def select(self, cls: str) -> Shape:
        for child in self.children:
            if cls in child.classes:
                return child
        raise KeyError(f"No shape with class {cls!r} in group {self.cls!r}")

    def select_all(self, cls: str) -> List[Shape]:
        return [c for c in self.children if cls in c.classes]

    def join(self, cls: str, kind: str, n: int) -> List[Shape]:
        """Keep exactly `n` shapes of class `cls` (enter/exit of a data join)."""
        current = self.select_all(cls)
        for extra in current[n:]:
            self.children.remove(extra)
        for _ in range(n - len(current)):
            current.append(self.append(kind, cls))
        return current[:n]

    def remove(self, shape: Shape) -> None:
        self.children.remove(shape)

    def clear(self) -> None:
        self.children.clear()

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["children"] = [c.to_dict() for c in self.children]
        return d


class Canvas(Protocol):
    def group(self, cls: str = "", **attrs: Any) -> Group: ...

    def release(self, group: Group) -> None: ...

    def to_dict(self) -> Dict[str, Any]: ...


class SceneCanvas:
    """In-memory scene graph, children drawn in insertion order."""

    def __init__(self, width: float, height: float):
        self.width = width
        self.height = height
        self.root = Group(cls="chart")

    def group(self, cls: str = "", **attrs: Any) -> Group:
        return self.root.add_group(cls, **attrs)

    def release(self, group: Group) -> None:
        if group in self.root.children:
            self.root.remove(group)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "root": self.root.to_dict(),
        }
