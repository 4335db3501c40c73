"""
Scene graph produced by the SIGL parser.

The scene is renderer agnostic: entities carry a category, a subtype, an
attribute map and an absolute position. Renderers and export managers consume
it; the parser never calls into them.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence

from .values import AttributeValue, unwrap


CANVAS_CENTER = (400, 300)


class Relation(Enum):
    """Spatial relations that defer a position until resolution."""
    NEXT_TO = "next_to"
    BEHIND = "behind"
    IN_FRONT_OF = "in_front_of"
    LEFT_OF = "left_of"
    RIGHT_OF = "right_of"
    ABOVE = "above"
    BELOW = "below"
    NEAR = "near"


@dataclass
class Position:
    """
    Entity position in canvas coordinates.

    While a relative reference is pending, ``relative``/``relative_to`` are
    set and ``x``/``y``/``z`` hold a provisional coordinate.
    """
    x: float = CANVAS_CENTER[0]
    y: float = CANVAS_CENTER[1]
    z: float = 0
    rotation: Optional[float] = None
    scale: Optional[float] = None

    relative: Optional[Relation] = None
    relative_to: Optional[str] = None
    distance: Optional[float] = None

    @property
    def is_resolved(self) -> bool:
        return self.relative is None and self.relative_to is None

    def clear_relative(self) -> None:
        self.relative = None
        self.relative_to = None
        self.distance = None

    def to_json(self) -> dict:
        data: Dict[str, Any] = {"x": self.x, "y": self.y, "z": self.z}
        if self.rotation is not None:
            data["rotation"] = self.rotation
        if self.scale is not None:
            data["scale"] = self.scale
        if not self.is_resolved:
            data["relative"] = self.relative.value if self.relative else None
            data["relativeTo"] = self.relative_to
            if self.distance is not None:
                data["distance"] = self.distance
        return data


@dataclass
class Entity:
    """A drawable scene member."""
    id: str
    category: str                   # human | object | prop
    subtype: str                    # adult_male, animal_dog, teacher ...
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)
    position: Position = field(default_factory=Position)
    keyword: str = ""               # Surface DRAW keyword, upper-cased

    def plain_attributes(self) -> Dict[str, Any]:
        """Attributes as plain Python data."""
        return unwrap(self.attributes)

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "subtype": self.subtype,
            "attributes": self.plain_attributes(),
            "position": self.position.to_json(),
        }


@dataclass
class Environment:
    """Scene environment: type tag plus background and lighting descriptors."""
    type: str = "default"
    background: Dict[str, Any] = field(
        default_factory=lambda: {"type": "solid", "color": "#ffffff"})
    lighting: Dict[str, Any] = field(default_factory=lambda: {"ambient": 0.8})

    def to_json(self) -> dict:
        return {"type": self.type, "background": self.background, "lighting": self.lighting}


@dataclass(frozen=True)
class Camera:
    """Fixed default camera."""
    position: tuple = (0, 0, 5)
    target: tuple = (0, 0, 0)
    fov: float = 45

    def to_json(self) -> dict:
        return {"position": list(self.position), "target": list(self.target), "fov": self.fov}


@dataclass
class ExportOptions:
    """Export configuration recorded by EXPORT. No I/O happens here."""
    format: str = "png"
    quality: Any = "medium"         # low | medium | high | ultra | int
    width: Optional[int] = None
    height: Optional[int] = None
    dpi: Optional[int] = None

    @property
    def resolution(self) -> Optional[Dict[str, int]]:
        if self.width is None or self.height is None:
            return None
        return {"width": self.width, "height": self.height}

    def to_json(self) -> dict:
        data: Dict[str, Any] = {"format": self.format, "quality": self.quality}
        if self.resolution is not None:
            data["resolution"] = self.resolution
        if self.dpi is not None:
            data["dpi"] = self.dpi
        return data


@dataclass
class SceneMetadata:
    author: str = ""
    version: str = "1.0.0"
    extensions: List[str] = field(default_factory=list)
    export_options: Optional[ExportOptions] = None

    def to_json(self) -> dict:
        data: Dict[str, Any] = {
            "author": self.author,
            "version": self.version,
            "extensions": list(self.extensions),
        }
        if self.export_options is not None:
            data["exportOptions"] = self.export_options.to_json()
        return data


@dataclass
class SceneDefinition:
    """
    The compilation unit.

    Entities are kept in DRAW order; UPDATE lookups and alias resolution
    depend on it. ``freeze()`` is called once the parse is finished.
    """
    entities: Sequence[Entity] = field(default_factory=list)
    environment: Environment = field(default_factory=Environment)
    camera: Camera = field(default_factory=Camera)
    metadata: SceneMetadata = field(default_factory=SceneMetadata)
    frozen: bool = False

    def add_entity(self, entity: Entity) -> None:
        if self.frozen:
            raise RuntimeError("scene is frozen")
        self.entities.append(entity)

    def find_entity(self, entity_id: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def freeze(self) -> None:
        """Make the entity list and attribute maps read-only."""
        if self.frozen:
            return
        self.entities = tuple(self.entities)
        for entity in self.entities:
            entity.attributes = MappingProxyType(dict(entity.attributes))
        self.frozen = True

    def to_json(self) -> dict:
        return {
            "type": "scene",
            "entities": [e.to_json() for e in self.entities],
            "environment": self.environment.to_json(),
            "camera": self.camera.to_json(),
            "metadata": self.metadata.to_json(),
        }
