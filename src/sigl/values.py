"""
Attribute values for scene entities.

An attribute is either a ``Scalar`` (number, string or bool) or a ``Record``
(string-keyed map of further values). Consumers can match on the two
variants instead of probing a dynamic dict for its shape.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Union


ScalarData = Union[int, float, str, bool]


class AttributeValue(ABC):
    """Base class of the two attribute variants."""

    @abstractmethod
    def to_python(self) -> Any:
        """The value as plain Python data."""


@dataclass(frozen=True)
class Scalar(AttributeValue):
    """A single number, string or boolean."""
    value: ScalarData

    @property
    def kind(self) -> str:
        """'bool', 'number' or 'string'."""
        # bool first: bool is an int subclass
        if isinstance(self.value, bool):
            return "bool"
        if isinstance(self.value, (int, float)):
            return "number"
        return "string"

    def to_python(self) -> ScalarData:
        return self.value

    def __repr__(self) -> str:
        return f"Scalar({self.value!r})"


@dataclass
class Record(AttributeValue):
    """A nested attribute record such as ``clothing`` or ``hair``."""
    fields: Dict[str, AttributeValue] = field(default_factory=dict)

    def __getitem__(self, key: str) -> AttributeValue:
        return self.fields[key]

    def __setitem__(self, key: str, value: AttributeValue) -> None:
        self.fields[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, key: str, default: Optional[AttributeValue] = None) -> Optional[AttributeValue]:
        return self.fields.get(key, default)

    def items(self):
        return self.fields.items()

    def to_python(self) -> Dict[str, Any]:
        return {k: v.to_python() for k, v in self.fields.items()}

    def __repr__(self) -> str:
        return f"Record({self.fields!r})"


def wrap(data: Any) -> AttributeValue:
    """
    Convert plain Python data (e.g. catalog defaults) into attribute values.

    Dicts become records, everything else must be a scalar.
    """
    if isinstance(data, AttributeValue):
        return data
    if isinstance(data, Mapping):
        return Record({str(k): wrap(v) for k, v in data.items()})
    if isinstance(data, (bool, int, float, str)):
        return Scalar(data)
    raise ValueError(f"cannot use {type(data).__name__} as an attribute value: {data!r}")


def unwrap(attributes: Mapping[str, AttributeValue]) -> Dict[str, Any]:
    """Convert an attribute map back to plain Python data."""
    return {k: v.to_python() for k, v in attributes.items()}


def record_in(attributes: Dict[str, AttributeValue], name: str) -> Record:
    """Get the record stored under ``name``, creating it if missing.

    A scalar already stored under the name is replaced.
    """
    existing = attributes.get(name)
    if isinstance(existing, Record):
        return existing
    record = Record()
    attributes[name] = record
    return record
