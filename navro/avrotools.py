""" Avro Tools Module """

import json
import hashlib
import base64
from typing import Dict, List, Union

from navro.schema import (ArraySchema, MapSchema, PrimitiveSchema, RecordSchema, RecursiveSchema, Schema,
                          UnionSchema)

JsonNode = Dict[str, 'JsonNode'] | List['JsonNode'] | str | int | bool | None


def transform_to_pcf(schema: Schema) -> str:
    """
    Transforms a derived schema into its Parsing Canonical Form (PCF).

    :param schema: The schema tree.
    :return: The Parsing Canonical Form (PCF) as a JSON string.
    """
    return json.dumps(canonicalize_schema(schema), separators=(',', ':'))


def canonicalize_schema(schema: Schema) -> JsonNode:
    """
    Recursively converts a schema tree to the Parsing Canonical Form (PCF).

    Primitives become bare names, records keep only ``name``, ``type`` and
    ``fields`` in that order, fields drop their defaults. Derived records
    carry no namespace, so names are already full names.

    :param schema: The schema tree.
    :return: The canonical schema as a JSON-compatible value.
    """
    if isinstance(schema, (PrimitiveSchema, RecursiveSchema)):
        return schema.to_avro()
    if isinstance(schema, RecordSchema):
        return {
            'name': schema.name,
            'type': 'record',
            'fields': [{'name': f.name, 'type': canonicalize_schema(f.type)} for f in schema.fields]
        }
    if isinstance(schema, ArraySchema):
        return {'type': 'array', 'items': canonicalize_schema(schema.items)}
    if isinstance(schema, MapSchema):
        return {'type': 'map', 'values': canonicalize_schema(schema.values)}
    if isinstance(schema, UnionSchema):
        return [canonicalize_schema(t) for t in schema.types]
    raise ValueError("Invalid schema: " + repr(schema))


def fingerprint_sha256(schema: Union[Schema, str]) -> str:
    """
    Generates a SHA-256 fingerprint for the given schema.

    :param schema: The schema tree or its PCF.
    :return: The SHA-256 fingerprint as a base64 string.
    """
    sha256_hash = hashlib.sha256(_pcf_bytes(schema)).digest()
    return base64.b64encode(sha256_hash).decode('utf-8')


def fingerprint_md5(schema: Union[Schema, str]) -> str:
    """
    Generates an MD5 fingerprint for the given schema.

    :param schema: The schema tree or its PCF.
    :return: The MD5 fingerprint as a base64 string.
    """
    md5_hash = hashlib.md5(_pcf_bytes(schema)).digest()
    return base64.b64encode(md5_hash).decode('utf-8')


def fingerprint_rabin(schema: Union[Schema, str]) -> str:
    """
    Generates a 64-bit Rabin (CRC-64-AVRO) fingerprint for the given schema,
    encoded as 8 little-endian bytes.

    :param schema: The schema tree or its PCF.
    :return: The Rabin fingerprint as a base64 string.
    """
    fp = fingerprint64(_pcf_bytes(schema))
    return base64.b64encode(fp.to_bytes(8, 'little')).decode('utf-8')


def _pcf_bytes(schema: Union[Schema, str]) -> bytes:
    pcf = schema if isinstance(schema, str) else transform_to_pcf(schema)
    return pcf.encode('utf-8')


def fingerprint64(buf: bytes) -> int:
    """
    Computes a 64-bit Rabin fingerprint (CRC-64-AVRO).

    :param buf: The input byte buffer.
    :return: The 64-bit Rabin fingerprint.
    """
    fp = EMPTY
    for byte in buf:
        fp = (fp >> 8) ^ FP_TABLE[(fp ^ byte) & 0xff]
    return fp


def _build_fp_table() -> List[int]:
    table = []
    for i in range(256):
        fp = i
        for _ in range(8):
            fp = (fp >> 1) ^ (EMPTY & -(fp & 1))
        table.append(fp)
    return table


EMPTY = 0xc15d213aa4d7a795
FP_TABLE = _build_fp_table()


class PCFSchemaResult:
    """ Parsing Canonical Form of a schema together with its fingerprints. """
    def __init__(self, pcf: str, sha256: str, md5: str, rabin: str) -> None:
        self.pcf = pcf
        self.sha256 = sha256
        self.md5 = md5
        self.rabin = rabin


def pcf_schema(schema: Schema) -> PCFSchemaResult:
    """
    Wrapper function to provide PCF transformation and fingerprinting.

    :param schema: The schema tree.
    :return: An instance of the PCFSchemaResult class containing the PCF and fingerprints (SHA-256, MD5, and Rabin) as base64 strings.
    """
    pcf = transform_to_pcf(schema)
    return PCFSchemaResult(pcf, fingerprint_sha256(pcf), fingerprint_md5(pcf), fingerprint_rabin(pcf))
