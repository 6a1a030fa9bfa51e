"""ID generators and identifier validation."""

import re

from cuid2 import Cuid

from firestore_explorer.core.constants import AUTO_ID_LENGTH, ID_PATTERN
from firestore_explorer.domain.exceptions import InvalidDocumentIdError

_id_generator = Cuid(length=AUTO_ID_LENGTH)
_id_re = re.compile(ID_PATTERN)


def generate_document_id() -> str:
    """Generate a collision-resistant document id (CUID2, 20 characters).

    Returns:
        A new id made of lowercase letters and digits.
    """
    result = _id_generator.generate()
    if not isinstance(result, str):
        raise TypeError(f"Expected str from id generator, got {type(result).__name__}")
    return result


def validate_identifier(value: str, kind: str = "document") -> str:
    """Validate and return a collection or document id.

    Raises:
        InvalidDocumentIdError: If value is empty or has characters outside
            letters, digits, underscore and hyphen.
    """
    if not value or not _id_re.match(value):
        raise InvalidDocumentIdError(value, kind)
    return value
