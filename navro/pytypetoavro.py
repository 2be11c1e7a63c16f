"""

Derive Avro schemas from native Python types.

"""

import importlib
import json
import logging
from typing import Any, Dict, Set, Tuple

from fastavro.schema import parse_schema

from navro.avrotools import pcf_schema, transform_to_pcf
from navro.kinds import Kind, NotSupported, element_type, field_name, key_type, kind_of, referent_type
from navro.kinds import struct_fields, struct_name, type_name, value_type
from navro.schema import (ArraySchema, BooleanSchema, BytesSchema, DoubleSchema, FloatSchema, IntSchema,
                          LongSchema, MapSchema, NullSchema, RecordSchema, RecursiveSchema, Schema,
                          SchemaField, StringSchema, UnionSchema)

logger = logging.getLogger(__name__)

DEFAULT_TAG = 'avro'

PRIMITIVE_SCHEMAS = {
    Kind.INVALID: NullSchema,
    Kind.BOOL: BooleanSchema,
    # <= 32 bits map to Avro int
    Kind.INT8: IntSchema,
    Kind.INT16: IntSchema,
    Kind.INT32: IntSchema,
    Kind.UINT8: IntSchema,
    Kind.UINT16: IntSchema,
    # uint32 does not fit a signed 32-bit int; native int is unbounded
    Kind.INT: LongSchema,
    Kind.INT64: LongSchema,
    Kind.UINT32: LongSchema,
    Kind.UINT64: LongSchema,
    Kind.STRING: StringSchema,
    Kind.FLOAT32: FloatSchema,
    Kind.FLOAT64: DoubleSchema,
}


class PythonTypeToAvro:
    """
    Walks a Python type and builds the matching Avro schema tree.

    An instance holds the record registry of exactly one derivation. Create a
    new instance for every type that is converted; instances must not be
    shared between threads.
    """

    def __init__(self, tag_key: str = DEFAULT_TAG) -> None:
        self.tag_key = tag_key
        self.record_schemas: Dict[str, RecordSchema] = {}

    def schema_by_type(self, type_ref: Any) -> Schema:
        """
        Converts a type into a schema.

        Args:
            type_ref: A class or typing form

        Returns:
            Schema: The schema node for the type

        Raises:
            NotSupported: if the type or any type reachable from it has no
                Avro counterpart
        """
        kind = kind_of(type_ref)
        if kind in PRIMITIVE_SCHEMAS:
            return PRIMITIVE_SCHEMAS[kind]()
        if kind in (Kind.ARRAY, Kind.SLICE):
            return self.schema_by_sequence(type_ref)
        if kind == Kind.MAP:
            return self.schema_by_map(type_ref)
        if kind == Kind.STRUCT:
            return self.schema_by_struct(type_ref)
        if kind == Kind.PTR:
            return UnionSchema([NullSchema(), self.schema_by_type(referent_type(type_ref))])
        raise NotSupported(f"{kind.value} will not be supported", kind, type_name(type_ref))

    def schema_by_sequence(self, type_ref: Any) -> Schema:
        """Sequences of uint8 become bytes, all other sequences arrays."""
        item_type = element_type(type_ref)
        if kind_of(item_type) == Kind.UINT8:
            return BytesSchema()
        return ArraySchema(self.schema_by_type(item_type))

    def schema_by_map(self, type_ref: Any) -> Schema:
        """Maps need string keys."""
        if kind_of(key_type(type_ref)) != Kind.STRING:
            raise NotSupported("Do not support map with non-string key", Kind.MAP, type_name(type_ref))
        return MapSchema(self.schema_by_type(value_type(type_ref)))

    def schema_by_struct(self, type_ref: Any) -> Schema:
        """
        Converts a record type.

        The record is registered before its fields are walked, so a field
        that refers back to the record (directly or through containers and
        other records) finds it and becomes a reference instead of an
        endless expansion. A record name that is already registered always
        yields a reference.
        """
        name = struct_name(type_ref)
        if name in self.record_schemas:
            logger.debug("Record %s already defined, referencing it", name)
            return RecursiveSchema(name)

        schema = RecordSchema(name)
        self.record_schemas[name] = schema
        logger.debug("Registered record %s", name)
        for struct_field in struct_fields(type_ref, self.tag_key):
            field_type_schema = self.schema_by_type(struct_field.type)
            schema.fields.append(SchemaField(field_name(struct_field), field_type_schema))
        return schema


def type_of(value: Any) -> Any:
    """
    Returns the type descriptor of a value.

    ``None`` describes ``NoneType``. Classes and typing forms (``List[int]``,
    ``Optional[Node]``, ``Annotated[...]``, NewType markers) describe
    themselves. Every other value is described by its class.
    """
    if value is None:
        return type(None)
    if isinstance(value, type) or hasattr(value, '__origin__') or hasattr(value, '__supertype__'):
        return value
    # typing.Any, TypeVar, X | Y
    if type(value).__module__ in ('typing', 'types'):
        return value
    return type(value)


def generate_schema(value: Any, tag_key: str = DEFAULT_TAG) -> Tuple[Schema, Dict[str, RecordSchema]]:
    """
    Derives the schema tree for a value's type.

    Returns:
        Tuple[Schema, Dict[str, RecordSchema]]: The root schema and the
            registry of all records defined in the tree, keyed by name
    """
    converter = PythonTypeToAvro(tag_key)
    schema = converter.schema_by_type(type_of(value))
    return schema, converter.record_schemas


def generate(value: Any, tag_key: str = DEFAULT_TAG) -> Tuple[str, Set[str]]:
    """
    Creates the Avro schema for whatever type ``value`` has.

    Args:
        value: A value, a class or a typing form
        tag_key: Dataclass field metadata key that carries serialized field names

    Returns:
        Tuple[str, Set[str]]: The schema as JSON text and the names of all
            records found in it

    Raises:
        NotSupported: if any part of the type has no Avro counterpart; no
            partial result is produced
    """
    schema, record_schemas = generate_schema(value, tag_key)
    return str(schema), set(record_schemas.keys())


def load_type(type_ref: str) -> Any:
    """
    Imports a type given as ``package.module:TypeName`` or
    ``package.module.TypeName``. Nested attributes are separated by dots
    after the colon.
    """
    if ':' in type_ref:
        module_name, attr_path = type_ref.split(':', 1)
    elif '.' in type_ref:
        module_name, attr_path = type_ref.rsplit('.', 1)
    else:
        raise ValueError(f"Type reference {type_ref} must name a module and a type")
    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split('.'):
        obj = getattr(obj, attr)
    return obj


def convert_python_type_to_avro(type_ref: str, avro_schema_path: str, tag_key: str = DEFAULT_TAG, pcf: bool = False):
    """
    Derives the Avro schema of an importable Python type and writes it to a file.

    Args:
        type_ref: ``package.module:TypeName`` reference to the type
        avro_schema_path: Output .avsc file
        tag_key: Dataclass field metadata key that carries serialized field names
        pcf: Write the Parsing Canonical Form instead of the indented schema
    """
    if not type_ref:
        raise ValueError("Type reference is required.")

    schema, record_schemas = generate_schema(load_type(type_ref), tag_key)
    logger.info("Derived schema for %s with records %s", type_ref, sorted(record_schemas.keys()))
    # field names taken from tags are not checked by the walker
    parse_schema(json.loads(str(schema)))
    with open(avro_schema_path, 'w', encoding='utf-8') as avro_file:
        if pcf:
            avro_file.write(transform_to_pcf(schema))
        else:
            json.dump(json.loads(str(schema)), avro_file, indent=4)


def print_python_type_fingerprints(type_ref: str, tag_key: str = DEFAULT_TAG):
    """Prints the Parsing Canonical Form and the fingerprints of a Python type's schema."""
    schema, _ = generate_schema(load_type(type_ref), tag_key)
    result = pcf_schema(schema)
    print(result.pcf)
    print(f"sha256: {result.sha256}")
    print(f"md5: {result.md5}")
    print(f"rabin: {result.rabin}")
