import json
import os
import sys
import unittest
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastavro.schema import parse_schema
from jsoncomparison import NO_DIFF, Compare

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)
sys.path.append(os.path.join(os.path.dirname(current_script_path), 'pytypes'))

from navro.kinds import Kind, NotSupported, float32, float64, int8, int64, uint16, uint32, uint64, uint8
from navro.pytypetoavro import PythonTypeToAvro, generate, generate_schema, type_of
from navro.schema import ArraySchema, LongSchema, RecordSchema, RecursiveSchema, UnionSchema
from navro_models import (AnotherType, Department, Employee, FailsLate, Hidden, IntKeyed, Labeled, NoInterface,
                          Pointer, Polygon, Reading, SomeMore, SomeType, StructPointer, Tagged, TreeNode,
                          WithCallback, WithComplex, WithQueue, WithTuple, WithUnion)


def get_ref(name):
    """Loads a reference schema from the pytypes folder."""
    with open(os.path.join(os.path.dirname(__file__), 'pytypes', name), 'r', encoding='utf-8') as ref:
        return json.load(ref)


class TestGenerate(unittest.TestCase):

    def assert_matches_ref(self, value, ref_name, expected_records):
        schema_json, record_names = generate(value)
        actual = json.loads(schema_json)
        parse_schema(actual)
        diff = Compare().check(actual, get_ref(ref_name))
        assert diff == NO_DIFF
        self.assertEqual(actual, get_ref(ref_name))
        self.assertEqual(record_names, expected_records)

    def test_struct(self):
        self.assert_matches_ref(AnotherType([], b'', (1, 2, 3), []), 'anothertype-ref.avsc', {'AnotherType'})

    def test_nested(self):
        self.assert_matches_ref(SomeType, 'sometype-ref.avsc', {'AnotherType', 'SomeMore', 'SomeType'})

    def test_pointer(self):
        self.assert_matches_ref(Pointer(), 'pointer-ref.avsc', {'Pointer'})

    def test_struct_pointer(self):
        self.assert_matches_ref(StructPointer([]), 'structpointer-ref.avsc', {'Pointer', 'StructPointer'})

    def test_no_interface(self):
        with self.assertRaises(NotSupported) as ctx:
            generate(NoInterface(None))
        self.assertEqual(str(ctx.exception), 'interface will not be supported')
        self.assertEqual(ctx.exception.kind, Kind.INTERFACE)

    def test_primitive_values(self):
        self.assertEqual(json.loads(generate('some string')[0]), {'type': 'string'})
        self.assertEqual(json.loads(generate(10)[0]), {'type': 'long'})
        self.assertEqual(json.loads(generate(0.48)[0]), {'type': 'double'})
        self.assertEqual(json.loads(generate(True)[0]), {'type': 'boolean'})
        self.assertEqual(json.loads(generate(None)[0]), {'type': 'null'})
        self.assertEqual(json.loads(generate(b'\x00\x01')[0]), {'type': 'bytes'})
        self.assertEqual(generate('some string')[1], set())

    def test_fixed_width_markers(self):
        self.assertEqual(json.loads(generate(int8)[0]), {'type': 'int'})
        self.assertEqual(json.loads(generate(uint16)[0]), {'type': 'int'})
        self.assertEqual(json.loads(generate(uint32)[0]), {'type': 'long'})
        self.assertEqual(json.loads(generate(int64)[0]), {'type': 'long'})
        self.assertEqual(json.loads(generate(uint64)[0]), {'type': 'long'})
        self.assertEqual(json.loads(generate(float32)[0]), {'type': 'float'})
        self.assertEqual(json.loads(generate(float64)[0]), {'type': 'double'})

    def test_array(self):
        schema_json, record_names = generate(List[int])
        self.assertEqual(json.loads(schema_json), {'type': 'array', 'items': 'long'})
        self.assertEqual(record_names, set())

    def test_untyped_list_value(self):
        with self.assertRaises(NotSupported):
            generate([1, 2, 3])

    def test_byte_sequences(self):
        schema_json, _ = generate(Reading)
        fields = {f['name']: f['type'] for f in json.loads(schema_json)['fields']}
        self.assertEqual(fields['sensor'], 'int')
        self.assertEqual(fields['level'], 'int')
        self.assertEqual(fields['counter'], 'long')
        self.assertEqual(fields['value'], 'float')
        self.assertEqual(fields['raw'], 'bytes')
        self.assertEqual(fields['blob'], 'bytes')
        self.assertEqual(fields['frames'], {'type': 'array', 'items': 'bytes'})
        self.assertEqual(json.loads(generate(List[uint8])[0]), {'type': 'bytes'})
        self.assertEqual(json.loads(generate(Tuple[uint8, uint8])[0]), {'type': 'bytes'})
        self.assertEqual(json.loads(generate(List[int8])[0]), {'type': 'array', 'items': 'int'})

    def test_map_types(self):
        self.assertEqual(json.loads(generate(Dict[str, float])[0]), {'type': 'map', 'values': 'double'})
        self.assertEqual(json.loads(generate(OrderedDict[str, List[str]])[0]),
                         {'type': 'map', 'values': {'type': 'array', 'items': 'string'}})

    def test_map_with_non_string_key(self):
        with self.assertRaises(NotSupported) as ctx:
            generate(IntKeyed({}))
        self.assertEqual(str(ctx.exception), 'Do not support map with non-string key')
        self.assertEqual(ctx.exception.kind, Kind.MAP)

    def test_unparameterized_dict_value(self):
        with self.assertRaises(NotSupported) as ctx:
            generate({'a': 1})
        self.assertEqual(str(ctx.exception), 'Do not support map with non-string key')
        self.assertEqual(ctx.exception.kind, Kind.MAP)

    def test_optional_root(self):
        schema_json, _ = generate(Optional[SomeMore])
        self.assertEqual(json.loads(schema_json), [
            'null', {'type': 'record', 'name': 'SomeMore', 'fields': [{'name': 'name', 'type': 'string'}]}])
        self.assertEqual(json.loads(generate(int | None)[0]), ['null', 'long'])

    def test_recursive_record(self):
        schema_json, record_names = generate(TreeNode)
        actual = json.loads(schema_json)
        parse_schema(actual)
        self.assertEqual(actual, {
            'type': 'record',
            'name': 'TreeNode',
            'fields': [
                {'name': 'value', 'type': 'long'},
                {'name': 'children', 'type': {'type': 'array', 'items': 'TreeNode'}},
                {'name': 'parent', 'default': None, 'type': ['null', 'TreeNode']}
            ]
        })
        self.assertEqual(record_names, {'TreeNode'})

    def test_recursive_record_uses_references(self):
        schema, registry = generate_schema(TreeNode)
        self.assertIsInstance(schema, RecordSchema)
        children = schema.field_by_name('children').type
        parent = schema.field_by_name('parent').type
        self.assertEqual(children, ArraySchema(RecursiveSchema('TreeNode')))
        self.assertEqual(parent, UnionSchema([parent.types[0], RecursiveSchema('TreeNode')]))
        self.assertIs(children.items.resolve(registry), schema)

    def test_indirect_recursion(self):
        schema_json, record_names = generate(Department)
        actual = json.loads(schema_json)
        parse_schema(actual)
        self.assertEqual(record_names, {'Department', 'Employee'})
        employee = actual['fields'][1]['type']['items']
        self.assertEqual(employee['name'], 'Employee')
        fields = {f['name']: f for f in employee['fields']}
        self.assertEqual(fields['department']['type'], ['null', 'Department'])
        self.assertIsNone(fields['department']['default'])
        self.assertEqual(fields['reports']['type'], {'type': 'map', 'values': 'Employee'})

    def test_indirect_recursion_from_other_side(self):
        _, record_names = generate(Employee)
        self.assertEqual(record_names, {'Department', 'Employee'})

    def test_field_tags(self):
        schema_json, _ = generate(Tagged)
        names = [f['name'] for f in json.loads(schema_json)['fields']]
        self.assertEqual(names, ['userId', 'display', 'score', 'plain'])

    def test_custom_tag_key(self):
        schema_json, _ = generate(Tagged, tag_key='json')
        names = [f['name'] for f in json.loads(schema_json)['fields']]
        self.assertEqual(names, ['user_id', 'display', 'Score', 'plain'])

    def test_hidden_fields_are_skipped(self):
        schema_json, _ = generate(Hidden('shown'))
        self.assertEqual(json.loads(schema_json)['fields'], [{'name': 'visible', 'type': 'string'}])

    def test_annotated_fields(self):
        schema_json, _ = generate(Labeled)
        fields = {f['name']: f['type'] for f in json.loads(schema_json)['fields']}
        self.assertEqual(fields, {'label': 'string', 'weights': {'type': 'map', 'values': 'double'}})

    def test_named_tuple_and_typed_dict(self):
        schema_json, record_names = generate(Polygon)
        actual = json.loads(schema_json)
        parse_schema(actual)
        self.assertEqual(actual['name'], 'Polygon')
        self.assertEqual(actual['fields'][1], {
            'name': 'points',
            'type': {
                'type': 'array',
                'items': {
                    'type': 'record',
                    'name': 'Point',
                    'fields': [{'name': 'x', 'type': 'double'}, {'name': 'y', 'type': 'double'}]
                }
            }
        })
        self.assertEqual(record_names, {'Polygon', 'Point'})

    def test_unsupported_kinds(self):
        cases = {
            WithCallback: 'func will not be supported',
            WithQueue: 'chan will not be supported',
            WithComplex: 'complex128 will not be supported',
            WithUnion: 'union will not be supported',
            WithTuple: 'tuple will not be supported',
            Any: 'interface will not be supported',
        }
        for type_ref, message in cases.items():
            with self.assertRaises(NotSupported) as ctx:
                generate(type_ref)
            self.assertEqual(str(ctx.exception), message)

    def test_function_value(self):
        with self.assertRaises(NotSupported) as ctx:
            generate(lambda x: x)
        self.assertEqual(ctx.exception.kind, Kind.FUNC)

    def test_failure_aborts_whole_derivation(self):
        with self.assertRaises(NotSupported):
            generate(FailsLate(SomeMore('x'), {}))

    def test_deterministic(self):
        first = generate(SomeType)
        second = generate(SomeType(1, {}, AnotherType([], b'', (1, 2, 3), []), SomeMore(''), []))
        self.assertEqual(first, second)

    def test_registry_is_per_call(self):
        generate(SomeMore)
        schema_json, record_names = generate(SomeMore)
        self.assertEqual(json.loads(schema_json)['type'], 'record')
        self.assertEqual(record_names, {'SomeMore'})

    def test_converter_instances_are_independent(self):
        first = PythonTypeToAvro()
        second = PythonTypeToAvro()
        first.schema_by_type(SomeMore)
        self.assertIsInstance(second.schema_by_type(SomeMore), RecordSchema)
        self.assertIsInstance(first.schema_by_type(SomeMore), RecursiveSchema)


class TestTypeOf(unittest.TestCase):

    def test_values_and_types(self):
        self.assertIs(type_of(None), type(None))
        self.assertIs(type_of(3), int)
        self.assertIs(type_of(int), int)
        self.assertIs(type_of(SomeMore('x')), SomeMore)
        self.assertEqual(type_of(List[int]), List[int])
        self.assertEqual(type_of(int | None), int | None)
        self.assertIs(type_of(uint8), uint8)
        self.assertIs(type_of(Any), Any)


@pytest.mark.parametrize("value, expected", [
    (LongSchema(), '{"type": "long"}'),
    (ArraySchema(LongSchema()), '{"type": "array", "items": "long"}'),
])
def test_generate_schema_renders_like_generate(value, expected):
    schema, _ = generate_schema(List[int] if isinstance(value, ArraySchema) else int)
    assert schema == value
    assert str(schema) == expected
