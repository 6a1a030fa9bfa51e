"""Encode/decode plain values to/from the Firestore REST API 'fields' format.

Encoding infers the wire type from the shape of a plain JSON value using an
ordered decision table (first matching rule wins). The inference is lossy by
nature: a map with exactly the keys ``latitude`` and ``longitude`` (both
numeric) is always written as a geopoint, and any string that looks like an
ISO-8601 date-time is written as a timestamp.

Decoding is total for well-formed wire values. Integers come back as ints,
geopoints carry the ``_geopoint`` marker so a later encode recognises them,
and references come back as the document path (``/users/u1``).
"""

from __future__ import annotations

import base64
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from firestore_explorer.core.constants import (
    GEOPOINT_MARKER,
    REFERENCE_ERROR_SENTINEL,
    REFERENCE_MARKER,
    TYPE_MARKER,
    WIRE_TAGS,
)
from firestore_explorer.domain.exceptions import ConversionError, UnknownFieldTypeError
from firestore_explorer.shared.utils.datetime import format_timestamp, parse_timestamp

_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?$"
)
_OFFSET_RE = re.compile(r"(Z|[+-]\d{2}:\d{2})$")
_REFERENCE_RE = re.compile(r"projects/([^/]+)/databases/([^/]+)/documents(/.*)")
# Non-finite doubles travel as strings.
_NON_FINITE = frozenset({"NaN", "Infinity", "-Infinity"})


def _malformed(tag: str, payload: Any) -> ConversionError:
    return ConversionError(f"Malformed {tag} payload: {payload!r}"[:200], "MALFORMED_WIRE_VALUE")


def _expect(obj: Mapping[str, Any], tag: str, kind: type, optional: bool = False) -> Any:
    """Return obj[tag], raising ConversionError unless it has the expected type."""
    payload = obj[tag]
    if payload is None and optional:
        return None
    if not isinstance(payload, kind):
        raise _malformed(tag, payload)
    return payload


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_integral(v: Any) -> bool:
    return isinstance(v, int) or (isinstance(v, float) and v.is_integer())


def _normalize_timestamp(value: str) -> str | None:
    """Return the normalized timestamp for an ISO-looking string, else None."""
    if not _TIMESTAMP_RE.match(value):
        return None
    if not _OFFSET_RE.search(value):
        value += "Z"
    try:
        return format_timestamp(parse_timestamp(value))
    except ValueError:
        return None


def _has_explicit_geopoint(v: Mapping) -> bool:
    return (
        (v.get(GEOPOINT_MARKER) is True or v.get(TYPE_MARKER) == "geopoint")
        and _is_number(v.get("latitude"))
        and _is_number(v.get("longitude"))
    )


def _has_explicit_reference(v: Mapping) -> bool:
    return (
        v.get(REFERENCE_MARKER) is True or v.get(TYPE_MARKER) == "reference"
    ) and isinstance(v.get("path"), str)


def _has_implicit_geopoint(v: Mapping) -> bool:
    return (
        set(v.keys()) == {"latitude", "longitude"}
        and _is_number(v["latitude"])
        and _is_number(v["longitude"])
    )


def _geopoint(v: Mapping) -> dict:
    return {"geoPointValue": {"latitude": v["latitude"], "longitude": v["longitude"]}}


@dataclass(frozen=True)
class _Rule:
    name: str
    matches: Callable[[Any], bool]
    encode: Callable[["ValueCodec", Any], dict]


class ValueCodec:
    """Bidirectional converter between wire field values and plain values.

    Args:
        database_root: Optional ``projects/{p}/databases/{d}/documents`` prefix.
            When set, relative reference paths are qualified with it on encode.
    """

    def __init__(self, database_root: str | None = None) -> None:
        self.database_root = database_root.rstrip("/") if database_root else None

    def reference_name(self, path: str) -> str:
        if self.database_root is None or path.startswith("projects/"):
            return path
        return f"{self.database_root}/{path.lstrip('/')}"

    # Ordered decision table used by encode(); first match wins.
    RULES: tuple[_Rule, ...] = (
        _Rule("null", lambda v: v is None, lambda c, v: {"nullValue": None}),
        _Rule("boolean", lambda v: isinstance(v, bool), lambda c, v: {"booleanValue": v}),
        _Rule(
            "integer",
            lambda v: _is_number(v) and _is_integral(v),
            lambda c, v: {"integerValue": str(int(v))},
        ),
        _Rule("double", _is_number, lambda c, v: {"doubleValue": v}),
        _Rule(
            "datetime",
            lambda v: isinstance(v, datetime),
            lambda c, v: {"timestampValue": format_timestamp(v)},
        ),
        _Rule(
            "timestamp",
            lambda v: isinstance(v, str) and _normalize_timestamp(v) is not None,
            lambda c, v: {"timestampValue": _normalize_timestamp(v)},
        ),
        _Rule("string", lambda v: isinstance(v, str), lambda c, v: {"stringValue": v}),
        _Rule(
            "bytes",
            lambda v: isinstance(v, (bytes, bytearray)),
            lambda c, v: {"bytesValue": base64.standard_b64encode(v).decode("ascii")},
        ),
        _Rule(
            "array",
            lambda v: isinstance(v, (list, tuple)),
            lambda c, v: {"arrayValue": {"values": [c.encode(x) for x in v]}},
        ),
        _Rule(
            "geopoint",
            lambda v: isinstance(v, Mapping) and _has_explicit_geopoint(v),
            lambda c, v: _geopoint(v),
        ),
        _Rule(
            "reference",
            lambda v: isinstance(v, Mapping) and _has_explicit_reference(v),
            lambda c, v: {"referenceValue": c.reference_name(v["path"])},
        ),
        _Rule(
            "implicit_geopoint",
            lambda v: isinstance(v, Mapping) and _has_implicit_geopoint(v),
            lambda c, v: _geopoint(v),
        ),
        _Rule(
            "map",
            lambda v: isinstance(v, Mapping),
            lambda c, v: {"mapValue": {"fields": c.encode_fields(v)}},
        ),
    )

    def encode(self, value: Any) -> dict:
        """Encode a plain value into a wire value."""
        for rule in self.RULES:
            if rule.matches(value):
                return rule.encode(self, value)
        return {"stringValue": str(value)}

    def encode_fields(self, data: Mapping[str, Any]) -> dict[str, dict]:
        """Encode a plain mapping into a wire ``fields`` mapping."""
        return {k: self.encode(v) for k, v in data.items()}

    def decode(self, obj: Mapping[str, Any]) -> Any:
        """Decode a wire value into a plain value.

        Raises:
            UnknownFieldTypeError: If obj carries no known wire tag.
            ConversionError: If a tag's payload has the wrong shape.
        """
        if not isinstance(obj, Mapping):
            raise UnknownFieldTypeError(obj)
        if "nullValue" in obj:
            return None
        if "booleanValue" in obj:
            return _expect(obj, "booleanValue", bool)
        if "integerValue" in obj:
            raw = obj["integerValue"]
            if isinstance(raw, bool) or not isinstance(raw, (str, int)):
                raise _malformed("integerValue", raw)
            try:
                return int(raw)
            except ValueError as e:
                raise _malformed("integerValue", raw) from e
        if "doubleValue" in obj:
            raw = obj["doubleValue"]
            if _is_number(raw):
                return raw
            if isinstance(raw, str) and raw in _NON_FINITE:
                return float(raw)
            raise _malformed("doubleValue", raw)
        if "timestampValue" in obj:
            return _expect(obj, "timestampValue", str)
        if "stringValue" in obj:
            return _expect(obj, "stringValue", str)
        if "bytesValue" in obj:
            return _expect(obj, "bytesValue", str)
        if "referenceValue" in obj:
            raw = obj["referenceValue"]
            match = _REFERENCE_RE.search(raw) if isinstance(raw, str) else None
            return match.group(3) if match else REFERENCE_ERROR_SENTINEL
        if "geoPointValue" in obj:
            point = _expect(obj, "geoPointValue", Mapping, optional=True) or {}
            lat, lon = point.get("latitude") or 0, point.get("longitude") or 0
            if not (_is_number(lat) and _is_number(lon)):
                raise _malformed("geoPointValue", point)
            return {GEOPOINT_MARKER: True, "latitude": lat, "longitude": lon}
        if "arrayValue" in obj:
            array = _expect(obj, "arrayValue", Mapping, optional=True) or {}
            values = array.get("values") or []
            if not isinstance(values, list):
                raise _malformed("arrayValue", array)
            return [self.decode(x) for x in values]
        if "mapValue" in obj:
            map_value = _expect(obj, "mapValue", Mapping, optional=True) or {}
            fields = map_value.get("fields") or {}
            if not isinstance(fields, Mapping):
                raise _malformed("mapValue", map_value)
            return {k: self.decode(x) for k, x in fields.items()}
        raise UnknownFieldTypeError(obj)
        if "nullValue" in obj:
            return None
        if "booleanValue" in obj:
            return obj["booleanValue"]
        if "integerValue" in obj:
            return int(obj["integerValue"])
        if "doubleValue" in obj:
            return obj["doubleValue"]
        if "timestampValue" in obj:
            return obj["timestampValue"]
        if "stringValue" in obj:
            return obj["stringValue"]
        if "bytesValue" in obj:
            return obj["bytesValue"]
        if "referenceValue" in obj:
            match = _REFERENCE_RE.search(obj["referenceValue"] or "")
            return match.group(3) if match else REFERENCE_ERROR_SENTINEL
        if "geoPointValue" in obj:
            point = obj["geoPointValue"] or {}
            return {
                GEOPOINT_MARKER: True,
                "latitude": point.get("latitude") or 0,
                "longitude": point.get("longitude") or 0,
            }
        if "arrayValue" in obj:
            vals = (obj["arrayValue"] or {}).get("values") or []
            return [self.decode(x) for x in vals]
        if "mapValue" in obj:
            fields = (obj["mapValue"] or {}).get("fields") or {}
            return {k: self.decode(x) for k, x in fields.items()}
        raise UnknownFieldTypeError(obj)

    def decode_fields(self, fields: Mapping[str, Any] | None) -> dict[str, Any]:
        """Decode a wire ``fields`` mapping into a plain dict."""
        if not fields:
            return {}
        return {k: self.decode(v) for k, v in fields.items()}

    def normalize(self, value: Any) -> Any:
        """Convert any raw wire values nested in a plain tree back to plain form.

        Used on import so files edited in raw wire form are accepted.
        """
        if is_wire_value(value):
            return self.decode(value)
        if isinstance(value, Mapping):
            return {k: self.normalize(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.normalize(v) for v in value]
        return value


def is_wire_value(value: Any) -> bool:
    """True when value is a mapping holding exactly one known wire tag."""
    return isinstance(value, Mapping) and len(value) == 1 and next(iter(value)) in WIRE_TAGS


def contains_wire_format(value: Any) -> bool:
    """Deep scan: True if any mapping key at any depth is a wire tag name."""
    if isinstance(value, Mapping):
        return any(k in WIRE_TAGS or contains_wire_format(v) for k, v in value.items())
    if isinstance(value, list):
        return any(contains_wire_format(v) for v in value)
    return False


_default_codec = ValueCodec()


def encode_value(value: Any) -> dict:
    """Encode a plain value with the default codec (references kept verbatim)."""
    return _default_codec.encode(value)


def decode_value(obj: Mapping[str, Any]) -> Any:
    """Decode a wire value with the default codec."""
    return _default_codec.decode(obj)

