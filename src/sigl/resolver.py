"""
Relative position resolution.

Runs once after every statement has been processed. Each entity whose
position still names a target is moved to the target's current position plus
a per-relation offset. Entities are visited in creation order and each is
resolved once, so a target that is itself relative and defined later is read
at its provisional coordinate.
"""

import logging
from typing import Dict, Mapping, Optional, Sequence, Tuple

from .errors import DiagnosticCollector, line_span, warning_unresolved_target
from .lexer import Statement
from .scene import CANVAS_CENTER, Entity, Relation, SceneDefinition

logger = logging.getLogger(__name__)


RELATION_OFFSETS: Dict[Relation, Tuple[float, float, float]] = {
    Relation.NEXT_TO: (150, 0, 0),
    Relation.BEHIND: (0, 50, -30),
    Relation.IN_FRONT_OF: (0, 100, 30),
    Relation.LEFT_OF: (-150, 0, 0),
    Relation.RIGHT_OF: (150, 0, 0),
    Relation.ABOVE: (0, -150, 0),
    Relation.BELOW: (0, 150, 0),
    Relation.NEAR: (80, 80, 0),
}

# Generic words that name the first entity of a subtype
SUBTYPE_ALIASES: Dict[str, str] = {
    "MAN": "adult_male",
    "WOMAN": "adult_female",
    "BOY": "child_male",
    "GIRL": "child_female",
}


def relation_offset(relation: Relation) -> Tuple[float, float, float]:
    """Fixed offset from a target for a relation. Distances only shape the provisional coordinate."""
    return RELATION_OFFSETS[relation]


def build_lookup(entities: Sequence[Entity]) -> Dict[str, Entity]:
    """
    Map every name an entity can be referred to by onto the entity.

    Keys are upper-cased; the first entity registered under a key keeps it.
    """
    lookup: Dict[str, Entity] = {}

    for entity in entities:
        lookup.setdefault(entity.id.upper(), entity)

    for alias, subtype in SUBTYPE_ALIASES.items():
        for entity in entities:
            if entity.subtype == subtype:
                lookup.setdefault(alias, entity)
                break

    for entity in entities:
        if entity.keyword:
            lookup.setdefault(entity.keyword.upper(), entity)
        lookup.setdefault(entity.subtype.upper(), entity)

    return lookup


def _candidates(target: str):
    key = target.strip().upper()
    yield key
    joined = "_".join(key.split())
    if joined != key:
        yield joined


class RelativePositionResolver:
    """
    Turns pending relative positions into absolute coordinates.

    Args:
        diagnostics: Receives a W101 warning for every target not found
        sources: Statement each entity was drawn by, for warning locations
    """

    def __init__(self, diagnostics: DiagnosticCollector,
                 sources: Optional[Mapping[str, Statement]] = None):
        self.diagnostics = diagnostics
        self.sources = sources or {}

    def resolve(self, scene: SceneDefinition) -> int:
        """Resolve all pending positions. Returns how many found their target."""
        lookup = build_lookup(scene.entities)
        resolved = 0

        for entity in scene.entities:
            position = entity.position
            if position.is_resolved:
                continue

            target = self._find(lookup, position.relative_to or "")
            if target is None:
                self._warn_unresolved(entity)
                position.x, position.y, position.z = CANVAS_CENTER[0], CANVAS_CENTER[1], 0
            else:
                dx, dy, dz = relation_offset(position.relative)
                position.x = target.position.x + dx
                position.y = target.position.y + dy
                position.z = target.position.z + dz
                resolved += 1
                logger.debug("%s %s %s -> (%s, %s, %s)", entity.id, position.relative.value,
                             target.id, position.x, position.y, position.z)
            position.clear_relative()

        return resolved

    def _find(self, lookup: Mapping[str, Entity], target: str) -> Optional[Entity]:
        for key in _candidates(target):
            if key in lookup:
                return lookup[key]
        return None

    def _warn_unresolved(self, entity: Entity) -> None:
        statement = self.sources.get(entity.id)
        if statement is not None:
            span, text = statement.span(), statement.text
        else:
            span, text = line_span(0), None
        self.diagnostics.add(
            warning_unresolved_target(entity.id, entity.position.relative_to, span, text))


def resolve_positions(scene: SceneDefinition, diagnostics: Optional[DiagnosticCollector] = None,
                      sources: Optional[Mapping[str, Statement]] = None) -> DiagnosticCollector:
    """
    Convenience function to resolve a scene's relative positions in place.

    Returns:
        The collector holding any W101 warnings
    """
    diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
    RelativePositionResolver(diagnostics, sources).resolve(scene)
    return diagnostics
