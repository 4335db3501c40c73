"""
Entity type mapping.

Maps the surface keyword of a DRAW statement to a ``(category, subtype)``
pair and the subtype's default attributes. Mapping is total: a keyword the
vocabulary does not know becomes a generic person instead of an error.
"""

from dataclasses import dataclass
from typing import Collection, Dict

from .values import AttributeValue, wrap
from .vocabulary import Vocabulary


ANIMAL_PREFIX = "ANIMAL_"

DEFAULT_CATEGORY = "human"
DEFAULT_SUBTYPE = "person"


@dataclass(frozen=True)
class EntityType:
    """Result of mapping a DRAW keyword."""
    keyword: str
    category: str
    subtype: str
    recognized: bool = True


class EntityTypeMapper:
    """
    Keyword to entity type lookup backed by a ``Vocabulary``.

    Args:
        vocabulary: Keyword and default tables
        loaded: Extensions loaded so far in the current parse
        strict: Only recognize extension keywords once their extension is loaded
    """

    def __init__(self, vocabulary: Vocabulary, loaded: Collection[str] = (),
                 strict: bool = False):
        self.vocabulary = vocabulary
        self.loaded = loaded
        self.strict = strict

    def map(self, keyword: str) -> EntityType:
        """Map an upper-cased keyword (``MAN``, ``ANIMAL_DOG``) to its type."""
        keyword = keyword.upper()

        if keyword.startswith(ANIMAL_PREFIX) and len(keyword) > len(ANIMAL_PREFIX):
            kind = keyword[len(ANIMAL_PREFIX):].lower()
            return EntityType(keyword, "object", f"animal_{kind}")

        found = self.vocabulary.lookup_entity(keyword, self.loaded, self.strict)
        if found is not None:
            return EntityType(keyword, found.category, found.subtype)

        return EntityType(keyword, DEFAULT_CATEGORY, DEFAULT_SUBTYPE, recognized=False)

    def defaults_for(self, subtype: str) -> Dict[str, AttributeValue]:
        """Default attributes for a subtype as attribute values."""
        return {k: wrap(v) for k, v in self.vocabulary.defaults_for(subtype).items()}
