"""Avro schema tree produced by the type walker.

Every node renders itself into the JSON-compatible Avro form through
``to_avro()``; ``str()`` renders the node as JSON text. Primitive nodes
render as their bare type name when nested and as ``{"type": "<name>"}``
when rendered on their own.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

JsonNode = Union[Dict[str, Any], List[Any], str, None]


class Schema:
    """Base class of all schema nodes."""

    type_name: str = ''

    def to_avro(self) -> JsonNode:
        """Returns the JSON-compatible Avro form of the schema."""
        raise NotImplementedError

    def __str__(self) -> str:
        return json.dumps(self.to_avro())


@dataclass(frozen=True)
class PrimitiveSchema(Schema):
    """Base class of the Avro primitive types."""

    def to_avro(self) -> JsonNode:
        return self.type_name

    def __str__(self) -> str:
        return json.dumps({'type': self.type_name})


@dataclass(frozen=True)
class NullSchema(PrimitiveSchema):
    """Avro ``null``."""
    type_name = 'null'


@dataclass(frozen=True)
class BooleanSchema(PrimitiveSchema):
    """Avro ``boolean``."""
    type_name = 'boolean'


@dataclass(frozen=True)
class IntSchema(PrimitiveSchema):
    """Avro ``int`` (32-bit signed)."""
    type_name = 'int'


@dataclass(frozen=True)
class LongSchema(PrimitiveSchema):
    """Avro ``long`` (64-bit signed)."""
    type_name = 'long'


@dataclass(frozen=True)
class StringSchema(PrimitiveSchema):
    """Avro ``string``."""
    type_name = 'string'


@dataclass(frozen=True)
class FloatSchema(PrimitiveSchema):
    """Avro ``float`` (32-bit IEEE 754)."""
    type_name = 'float'


@dataclass(frozen=True)
class DoubleSchema(PrimitiveSchema):
    """Avro ``double`` (64-bit IEEE 754)."""
    type_name = 'double'


@dataclass(frozen=True)
class BytesSchema(PrimitiveSchema):
    """Avro ``bytes``."""
    type_name = 'bytes'


@dataclass(frozen=True)
class ArraySchema(Schema):
    """Avro ``array`` of a single item schema."""
    items: Schema
    type_name = 'array'

    def to_avro(self) -> JsonNode:
        return {'type': 'array', 'items': self.items.to_avro()}


@dataclass(frozen=True)
class MapSchema(Schema):
    """Avro ``map``. Keys are always strings."""
    values: Schema
    type_name = 'map'

    def to_avro(self) -> JsonNode:
        return {'type': 'map', 'values': self.values.to_avro()}


@dataclass(frozen=True)
class UnionSchema(Schema):
    """Avro union. The walker only builds ``[null, <referent>]`` unions."""
    types: List[Schema]
    type_name = 'union'

    def is_nullable(self) -> bool:
        """Checks whether ``null`` is the first branch of the union."""
        return len(self.types) > 0 and isinstance(self.types[0], NullSchema)

    def to_avro(self) -> JsonNode:
        return [t.to_avro() for t in self.types]

    def __hash__(self) -> int:
        return hash(tuple(self.types))


@dataclass(frozen=True)
class SchemaField:
    """A named, typed field of a record."""
    name: str
    type: Schema

    def to_avro(self) -> Dict[str, Any]:
        """Renders the field. Nullable fields default to ``null``."""
        if isinstance(self.type, UnionSchema) and self.type.is_nullable():
            return {'name': self.name, 'default': None, 'type': self.type.to_avro()}
        return {'name': self.name, 'type': self.type.to_avro()}


@dataclass(eq=True)
class RecordSchema(Schema):
    """
    Avro ``record``.

    The walker registers the record before its fields are derived, so the
    field list is filled in place while the record is already reachable
    through the registry. Once the walk returns, the record is not modified.
    """
    name: str
    fields: List[SchemaField] = field(default_factory=list)
    type_name = 'record'

    def field_by_name(self, name: str) -> Optional[SchemaField]:
        """Returns the field with the given name, if any."""
        return next((f for f in self.fields if f.name == name), None)

    def to_avro(self) -> JsonNode:
        return {
            'type': 'record',
            'name': self.name,
            'fields': [f.to_avro() for f in self.fields]
        }

    def __hash__(self) -> int:
        return hash(self.name)


@dataclass(frozen=True)
class RecursiveSchema(Schema):
    """
    Reference to a record that was already defined earlier in the same tree.

    Holds the record name only; the record itself lives in the registry of
    the walk that produced the reference.
    """
    name: str
    type_name = 'recursive'

    def resolve(self, registry: Dict[str, RecordSchema]) -> RecordSchema:
        """Looks up the referenced record in a registry."""
        return registry[self.name]

    def to_avro(self) -> JsonNode:
        return self.name

