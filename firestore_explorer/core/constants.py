"""Constants shared across the codec and the transfer engine."""

# Remote batch-write capacity ceiling (writes per call).
MAX_BATCH_WRITE_SIZE = 500

# Export tree keys
FIELDS_KEY = "_fields"
SUBCOLLECTIONS_KEY = "_subcollections"

# Plain-value markers recognised by encode (decode emits GEOPOINT_MARKER).
GEOPOINT_MARKER = "_geopoint"
REFERENCE_MARKER = "_reference"
TYPE_MARKER = "_type"

# Returned by decode for a reference whose resource name is malformed.
REFERENCE_ERROR_SENTINEL = "<ERROR>"

# Wire tags (exactly one is set on a well-formed wire value).
WIRE_TAGS = frozenset({
    "nullValue",
    "booleanValue",
    "integerValue",
    "doubleValue",
    "timestampValue",
    "stringValue",
    "bytesValue",
    "referenceValue",
    "geoPointValue",
    "arrayValue",
    "mapValue",
})

# Document / collection ids accepted by the single-document service.
ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
AUTO_ID_LENGTH = 20
