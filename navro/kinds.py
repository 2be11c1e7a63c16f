"""
Structural classification of Python types.

The walker never looks at concrete classes directly. It asks this module for
the *kind* of a type (its structural category), for the element, key, value
or referent type of containers and optionals, and for the visible fields of
record types.

Python has a single arbitrary-precision ``int`` and a single 64-bit
``float``. The fixed-width markers below (``int8`` ... ``float64``) are
``typing.NewType`` aliases that let annotations state the storage width
that should end up in the schema::

    @dataclass
    class Reading:
        sensor: uint8
        value: float32
        samples: List[int16]
"""

import asyncio
import collections.abc
import dataclasses
import queue
import types
from enum import Enum
from typing import Any, Annotated, Dict, ForwardRef, List, NewType, NotRequired, Optional, Required, TypeVar, Union
from typing import get_args, get_origin, get_type_hints, is_typeddict

int8 = NewType('int8', int)
int16 = NewType('int16', int)
int32 = NewType('int32', int)
int64 = NewType('int64', int)
uint8 = NewType('uint8', int)
uint16 = NewType('uint16', int)
uint32 = NewType('uint32', int)
uint64 = NewType('uint64', int)
float32 = NewType('float32', float)
float64 = NewType('float64', float)

NoneType = type(None)


class Kind(Enum):
    """Structural category of a type. The value is the name used in messages."""
    INVALID = 'invalid'
    BOOL = 'bool'
    INT = 'int'
    INT8 = 'int8'
    INT16 = 'int16'
    INT32 = 'int32'
    INT64 = 'int64'
    UINT8 = 'uint8'
    UINT16 = 'uint16'
    UINT32 = 'uint32'
    UINT64 = 'uint64'
    FLOAT32 = 'float32'
    FLOAT64 = 'float64'
    COMPLEX128 = 'complex128'
    STRING = 'string'
    ARRAY = 'array'
    SLICE = 'slice'
    MAP = 'map'
    STRUCT = 'struct'
    PTR = 'ptr'
    INTERFACE = 'interface'
    FUNC = 'func'
    CHAN = 'chan'
    UNION = 'union'
    TUPLE = 'tuple'
    ENUM = 'enum'
    TYPEVAR = 'typevar'
    FORWARDREF = 'forwardref'
    OBJECT = 'object'


class NotSupported(Exception):
    """
    Raised when a type cannot be expressed as an Avro schema.

    Attributes:
        message: Human-readable description of the offending type shape
        kind: The kind of the offending type, if known
        type_name: Readable name of the offending type, if known
    """

    def __init__(self, message: str, kind: Optional[Kind] = None, type_name: Optional[str] = None) -> None:
        self.message = message
        self.kind = kind
        self.type_name = type_name
        super().__init__(message)


WIDTH_KINDS: Dict[Any, Kind] = {
    int8: Kind.INT8,
    int16: Kind.INT16,
    int32: Kind.INT32,
    int64: Kind.INT64,
    uint8: Kind.UINT8,
    uint16: Kind.UINT16,
    uint32: Kind.UINT32,
    uint64: Kind.UINT64,
    float32: Kind.FLOAT32,
    float64: Kind.FLOAT64,
}

BYTE_SEQUENCE_TYPES = (bytes, bytearray, memoryview)
FUNCTION_TYPES = (types.FunctionType, types.BuiltinFunctionType, types.MethodType,
                  types.BuiltinMethodType, types.LambdaType, staticmethod, classmethod)
CHANNEL_TYPES = (queue.Queue, queue.SimpleQueue, asyncio.Queue)


@dataclasses.dataclass
class StructField:
    """A field of a record type as seen by introspection."""
    name: str
    type: Any
    tag: Optional[str] = None


def unwrap(type_ref: Any) -> Any:
    """
    Strips ``Annotated``, ``Required`` and ``NotRequired`` wrappers and
    NewTypes that are not width markers.
    """
    while True:
        if get_origin(type_ref) in (Annotated, Required, NotRequired):
            type_ref = get_args(type_ref)[0]
        elif hasattr(type_ref, '__supertype__') and type_ref not in WIDTH_KINDS:
            type_ref = type_ref.__supertype__
        else:
            return type_ref


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


def is_struct(cls: Any) -> bool:
    """Checks for dataclasses, NamedTuples and TypedDicts."""
    if not isinstance(cls, type):
        return False
    if dataclasses.is_dataclass(cls) or is_typeddict(cls):
        return True
    return issubclass(cls, tuple) and hasattr(cls, '_fields')


def kind_of(type_ref: Any) -> Kind:
    """Returns the structural kind of a type or typing form."""
    # pylint: disable=too-many-return-statements, too-many-branches
    type_ref = unwrap(type_ref)
    if type_ref is None or type_ref is NoneType:
        return Kind.INVALID
    if type_ref in WIDTH_KINDS:
        return WIDTH_KINDS[type_ref]
    if type_ref is Any or type_ref is object:
        return Kind.INTERFACE
    if isinstance(type_ref, TypeVar):
        return Kind.TYPEVAR
    if isinstance(type_ref, (str, ForwardRef)):
        return Kind.FORWARDREF

    origin = get_origin(type_ref)
    if _is_union(origin):
        args = get_args(type_ref)
        if len(args) == 2 and NoneType in args:
            return Kind.PTR
        return Kind.UNION
    if origin is collections.abc.Callable:
        return Kind.FUNC

    base = origin if origin is not None else type_ref
    if not isinstance(base, type):
        return Kind.OBJECT
    if is_struct(base):
        return Kind.STRUCT
    if issubclass(base, Enum):
        return Kind.ENUM
    if base is tuple:
        return _tuple_kind(type_ref)
    if issubclass(base, FUNCTION_TYPES):
        return Kind.FUNC
    if issubclass(base, CHANNEL_TYPES):
        return Kind.CHAN
    if issubclass(base, bool):
        return Kind.BOOL
    if issubclass(base, int):
        return Kind.INT
    if issubclass(base, float):
        return Kind.FLOAT64
    if issubclass(base, complex):
        return Kind.COMPLEX128
    if issubclass(base, str):
        return Kind.STRING
    if issubclass(base, BYTE_SEQUENCE_TYPES):
        return Kind.SLICE
    if issubclass(base, collections.abc.Mapping):
        return Kind.MAP
    if issubclass(base, (collections.abc.Sequence, collections.abc.Set)):
        return Kind.SLICE
    return Kind.OBJECT


def _tuple_kind(type_ref: Any) -> Kind:
    args = get_args(type_ref)
    if not args:
        return Kind.SLICE
    if len(args) == 2 and args[1] is Ellipsis:
        return Kind.SLICE
    if all(a == args[0] for a in args):
        return Kind.ARRAY
    return Kind.TUPLE


def type_name(type_ref: Any) -> str:
    """Readable name of a type or typing form."""
    type_ref = unwrap(type_ref)
    if get_origin(type_ref) is None and isinstance(type_ref, type):
        return type_ref.__name__
    return getattr(type_ref, '__name__', None) or repr(type_ref)


def element_type(type_ref: Any) -> Any:
    """Element type of a sequence. Byte strings are sequences of ``uint8``."""
    type_ref = unwrap(type_ref)
    if isinstance(type_ref, type) and issubclass(type_ref, BYTE_SEQUENCE_TYPES):
        return uint8
    args = get_args(type_ref)
    return args[0] if args else Any


def key_type(type_ref: Any) -> Any:
    """Key type of a mapping."""
    args = get_args(unwrap(type_ref))
    return args[0] if args else Any


def value_type(type_ref: Any) -> Any:
    """Value type of a mapping. ``Counter[K]`` counts with ``int`` values."""
    type_ref = unwrap(type_ref)
    args = get_args(type_ref)
    if len(args) == 1 and get_origin(type_ref) is collections.Counter:
        return int
    return args[1] if len(args) > 1 else Any


def referent_type(type_ref: Any) -> Any:
    """The non-``None`` branch of an optional."""
    return next(a for a in get_args(unwrap(type_ref)) if a is not NoneType)


def struct_name(type_ref: Any) -> str:
    """Name under which a record type is registered."""
    type_ref = unwrap(type_ref)
    return (get_origin(type_ref) or type_ref).__name__


def struct_fields(type_ref: Any, tag_key: str) -> List[StructField]:
    """
    Lists the fields of a record type that are visible to introspection,
    in declaration order.

    Fields whose name starts with an underscore are private and skipped.
    ``ClassVar`` and ``InitVar`` pseudo-fields of dataclasses are never listed.
    Tags are only read from dataclass field metadata under ``tag_key``.

    Args:
        type_ref: A dataclass, NamedTuple or TypedDict class
        tag_key: Metadata key holding the serialization tag

    Raises:
        NotSupported: if the annotations contain unresolvable forward references
    """
    cls = get_origin(unwrap(type_ref)) or unwrap(type_ref)
    try:
        hints = get_type_hints(cls, localns={cls.__name__: cls}, include_extras=True)
    except NameError as e:
        raise NotSupported(f"{cls.__name__} has an unresolved forward reference: {e}",
                           Kind.FORWARDREF, cls.__name__) from e

    if dataclasses.is_dataclass(cls):
        struct_fields_list = [
            StructField(f.name, hints.get(f.name, f.type), _tag_of(f, tag_key))
            for f in dataclasses.fields(cls)
        ]
    elif is_typeddict(cls):
        struct_fields_list = [StructField(name, t) for name, t in hints.items()]
    else:
        struct_fields_list = [StructField(name, hints.get(name, Any)) for name in cls._fields]
    return [f for f in struct_fields_list if not f.name.startswith('_')]


def _tag_of(f: dataclasses.Field, tag_key: str) -> Optional[str]:
    tag = f.metadata.get(tag_key) if f.metadata else None
    return None if tag is None else str(tag)


def field_name(struct_field: StructField) -> str:
    """
    Serialized name of a field: the first comma-separated segment of its
    tag, or the declared name when there is no tag or that segment is empty.
    """
    if struct_field.tag is None:
        return struct_field.name
    return struct_field.tag.split(',')[0] or struct_field.name
