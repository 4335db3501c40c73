"""Entity and environment vocabulary with bundled data and external override support.

The parser treats the vocabulary as a read-only lookup dependency: which DRAW
keywords exist, which defaults each subtype carries, and which backgrounds
the named environments use. Vocabulary comes from YAML catalogs:

- ``core`` - built-in humans, objects, props and environments (always loaded)
- one catalog per extension (``educational``, ``hospital``, ``military``)

Environment Variables:
    SIGL_VOCABULARY_DATA: Colon-separated (or semicolon on Windows) paths
                          to directories containing custom YAML catalogs.
                          These are searched before bundled data.

Example:
    export SIGL_VOCABULARY_DATA="/path/to/my/catalogs:/another/path"
"""

from __future__ import annotations

import copy
import logging
import os
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Collection, Dict, FrozenSet, List, Mapping, Optional, Sequence

import yaml

__all__ = [
    "SIGL_VOCABULARY_DATA",
    "CORE_CATALOG",
    "EntityTypeDef",
    "EnvironmentDef",
    "Vocabulary",
    "CatalogVocabulary",
    "load_catalog",
    "load_vocabulary",
    "clear_cache",
]

logger = logging.getLogger(__name__)

# Environment variable name for custom data paths
SIGL_VOCABULARY_DATA = "SIGL_VOCABULARY_DATA"

CORE_CATALOG = "core"

# Bundled data location (relative to this file)
_BUNDLED_DATA_DIR = Path(__file__).parent / "data"

CATEGORIES = ("human", "object", "prop")


@dataclass(frozen=True)
class EntityTypeDef:
    """A DRAW keyword and what it maps to."""
    keyword: str                # upper-cased surface keyword
    category: str
    subtype: str
    extension: Optional[str] = None   # None for core vocabulary


@dataclass(frozen=True)
class EnvironmentDef:
    """A named environment preset."""
    name: str
    background: Dict[str, Any] = field(default_factory=dict)
    lighting: Dict[str, Any] = field(default_factory=dict)
    extension: Optional[str] = None


class Vocabulary(ABC):
    """Read-only vocabulary consulted by the entity mapper and ADD ENVIRONMENT.

    Lookups take the extensions loaded so far. With ``strict`` set, only core
    and loaded extensions are searched; otherwise every known extension is.
    """

    @abstractmethod
    def extension_names(self) -> FrozenSet[str]:
        """Names of all extensions this vocabulary can provide."""

    @abstractmethod
    def lookup_entity(self, keyword: str, loaded: Collection[str] = (),
                      strict: bool = False) -> Optional[EntityTypeDef]:
        """Find the definition of a DRAW keyword. Core wins over extensions."""

    @abstractmethod
    def defaults_for(self, subtype: str) -> Dict[str, Any]:
        """Default attribute record for a subtype (a fresh copy)."""

    @abstractmethod
    def lookup_environment(self, name: str, loaded: Collection[str] = (),
                           strict: bool = False) -> Optional[EnvironmentDef]:
        """Find an environment preset. Loaded extensions win over core."""

    @abstractmethod
    def entity_types(self, extension: Optional[str] = None) -> List[EntityTypeDef]:
        """All entity definitions, optionally from one catalog only."""

    @abstractmethod
    def environments(self, extension: Optional[str] = None) -> List[EnvironmentDef]:
        """All environment presets, optionally from one catalog only."""


class CatalogVocabulary(Vocabulary):
    """Vocabulary built from parsed catalog dictionaries.

    The catalog named ``core`` is searched first; extension catalogs follow
    in the order given.
    """

    def __init__(self, catalogs: Sequence[Mapping[str, Any]]):
        self._fallback_defaults: Dict[str, Any] = {}
        self._entities: Dict[str, Dict[str, EntityTypeDef]] = {}
        self._environments: Dict[str, Dict[str, EnvironmentDef]] = {}
        self._defaults: Dict[str, Dict[str, Any]] = {}
        self._order: List[str] = []

        ordered = sorted(catalogs, key=lambda c: c.get("name") != CORE_CATALOG)
        for catalog in ordered:
            self._add_catalog(catalog)

    def _add_catalog(self, catalog: Mapping[str, Any]) -> None:
        name = str(catalog.get("name", "")).lower()
        if not name:
            raise ValueError("catalog is missing its 'name'")
        if name in self._entities:
            return
        extension = None if name == CORE_CATALOG else name
        self._order.append(name)

        entities = {}
        for keyword, entry in (catalog.get("entities") or {}).items():
            category = entry.get("category", "human")
            if category not in CATEGORIES:
                raise ValueError(f"catalog '{name}': entity {keyword} has unknown category '{category}'")
            entities[str(keyword).upper()] = EntityTypeDef(
                keyword=str(keyword).upper(),
                category=category,
                subtype=str(entry["subtype"]),
                extension=extension,
            )
        self._entities[name] = entities

        self._environments[name] = {
            str(env).lower(): EnvironmentDef(
                name=str(env).lower(),
                background=dict(entry.get("background") or {}),
                lighting=dict(entry.get("lighting") or {}),
                extension=extension,
            )
            for env, entry in (catalog.get("environments") or {}).items()
        }

        for subtype, defaults in (catalog.get("defaults") or {}).items():
            self._defaults.setdefault(str(subtype), dict(defaults or {}))

        if not self._fallback_defaults and catalog.get("fallback_defaults"):
            self._fallback_defaults = dict(catalog["fallback_defaults"])

    def _partition(self, loaded: Collection[str]) -> tuple[List[str], List[str]]:
        """Split extension catalogs into (loaded, others), catalog order kept."""
        wanted = {e.lower() for e in loaded}
        extensions = [n for n in self._order if n != CORE_CATALOG]
        return ([n for n in extensions if n in wanted],
                [n for n in extensions if n not in wanted])

    def extension_names(self) -> FrozenSet[str]:
        return frozenset(n for n in self._order if n != CORE_CATALOG)

    def lookup_entity(self, keyword, loaded=(), strict=False):
        keyword = keyword.upper()
        active, others = self._partition(loaded)
        order = [CORE_CATALOG] + active + ([] if strict else others)
        for name in order:
            found = self._entities.get(name, {}).get(keyword)
            if found is not None:
                return found
        return None

    def defaults_for(self, subtype):
        defaults = self._defaults.get(subtype, self._fallback_defaults)
        return copy.deepcopy(defaults)

    def lookup_environment(self, name, loaded=(), strict=False):
        name = name.lower()
        active, others = self._partition(loaded)
        order = active + [CORE_CATALOG] + ([] if strict else others)
        for catalog in order:
            found = self._environments.get(catalog, {}).get(name)
            if found is not None:
                return found
        return None

    def entity_types(self, extension=None):
        names = self._order if extension is None else [extension.lower()]
        return [d for n in names for d in self._entities.get(n, {}).values()]

    def environments(self, extension=None):
        names = self._order if extension is None else [extension.lower()]
        return [d for n in names for d in self._environments.get(n, {}).values()]


def clear_cache() -> None:
    """Clear all cached catalog data.

    Call this if you modify external catalog files and want to reload.
    """
    _get_data_dirs.cache_clear()
    _load_vocabulary_cached.cache_clear()


@lru_cache(maxsize=None)
def _get_data_dirs() -> tuple[Path, ...]:
    """Return tuple of data directories to search, in priority order.

    Search order:
        1. Directories from SIGL_VOCABULARY_DATA environment variable
        2. User config directory (~/.config/sigl/vocabulary/)
        3. Bundled data directory
    """
    dirs: List[Path] = []

    env_path = os.environ.get(SIGL_VOCABULARY_DATA)
    if env_path:
        sep = ";" if sys.platform == "win32" else ":"
        for p in env_path.split(sep):
            p = p.strip()
            if p:
                path = Path(p).expanduser().resolve()
                if path.is_dir():
                    dirs.append(path)

    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"

    user_config = config_base / "sigl" / "vocabulary"
    if user_config.is_dir():
        dirs.append(user_config)

    if _BUNDLED_DATA_DIR.is_dir():
        dirs.append(_BUNDLED_DATA_DIR)

    return tuple(dirs)


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load and validate a YAML catalog file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Invalid catalog format in {path}: expected dict at root")

    schema_version = data.get("schema_version", "1.0")
    if not isinstance(schema_version, str) or not schema_version.startswith("1."):
        raise ValueError(
            f"Unsupported schema version '{schema_version}' in {path}. "
            f"Expected version 1.x"
        )

    if "entities" not in data and "environments" not in data:
        raise ValueError(f"Catalog {path} has neither 'entities' nor 'environments'")

    data.setdefault("name", path.stem)
    data["_source_path"] = str(path)
    return data


def load_catalog(name: str, custom_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load a single catalog by name.

    Args:
        name: Catalog name, e.g. "core" or "hospital"
        custom_path: Optional explicit path to a YAML file (overrides search)

    Raises:
        FileNotFoundError: If no catalog file is found
        ValueError: If the catalog has an invalid format
    """
    if custom_path:
        if not custom_path.exists():
            raise FileNotFoundError(f"Custom catalog not found: {custom_path}")
        return _load_yaml(custom_path)

    filename = f"{name}.yaml"
    for data_dir in _get_data_dirs():
        path = data_dir / filename
        if path.exists():
            return _load_yaml(path)

    searched = [str(d) for d in _get_data_dirs()]
    raise FileNotFoundError(
        f"No catalog found for '{name}'.\n"
        f"Searched directories: {searched}"
    )


@lru_cache(maxsize=1)
def _load_vocabulary_cached() -> CatalogVocabulary:
    names: List[str] = []
    for data_dir in _get_data_dirs():
        for path in sorted(data_dir.glob("*.yaml")):
            if path.stem not in names:
                names.append(path.stem)

    if CORE_CATALOG not in names:
        searched = [str(d) for d in _get_data_dirs()]
        raise FileNotFoundError(f"No '{CORE_CATALOG}' catalog found. Searched directories: {searched}")

    catalogs = [load_catalog(name) for name in names]
    for catalog in catalogs:
        logger.info("loaded vocabulary catalog %s from %s", catalog["name"], catalog["_source_path"])
    return CatalogVocabulary(catalogs)


def load_vocabulary() -> CatalogVocabulary:
    """Load every catalog found on the search path (cached).

    Search order per catalog name:
        1. $SIGL_VOCABULARY_DATA directories
        2. ~/.config/sigl/vocabulary/
        3. Bundled data

    Raises:
        FileNotFoundError: If no core catalog exists
        ValueError: If a catalog has an invalid format
    """
    return _load_vocabulary_cached()
