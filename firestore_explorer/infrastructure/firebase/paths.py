"""Resource path helpers.

Relative paths (``users/u1/orders``) are what the transfer engine passes
around; fully-qualified resource names
(``projects/{p}/databases/{d}/documents/users/u1``) are what the REST API
expects in batch writes and returns in ``Document.name``.
"""


def database_root(project_id: str, database_id: str = "(default)") -> str:
    """Return ``projects/{p}/databases/{d}/documents``."""
    return f"projects/{project_id}/databases/{database_id}/documents"


def join_path(*segments: str) -> str:
    """Join path segments, dropping empty ones and stray slashes."""
    return "/".join(s.strip("/") for s in segments if s and s.strip("/"))


def relative_path(name: str) -> str:
    """Strip the ``.../documents/`` prefix from a resource name.

    Names without that prefix are returned without their leading slash.
    """
    _, sep, rest = name.partition("/documents/")
    return rest if sep else name.lstrip("/")


def last_segment(path: str) -> str:
    """Last segment of a path (document or collection id)."""
    return path.rstrip("/").rsplit("/", 1)[-1]


def split_document_path(path: str) -> tuple[str, str]:
    """Split ``a/b/c/d`` into (collection path ``a/b/c``, document id ``d``)."""
    parent, _, doc_id = path.strip("/").rpartition("/")
    return parent, doc_id
