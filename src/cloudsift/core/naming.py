"""Name codec — Namespacing of field names and document ids on a shared domain.

Every name that crosses the service boundary is prefixed with the owning
index's namespace and a ``_`` delimiter.  The service reserves ``:`` in
queries, so colons inside abstract field names are replaced with a fixed
escape sequence.

``decode(ns, encode(ns, name)) == name`` holds for every ``name`` that
does not already contain ``COLON_ESCAPE``.  Decoding never fails: a name
without the prefix is returned with only the escape reversed.
"""

from __future__ import annotations

from collections.abc import Iterable

DELIMITER = "_"
COLON_ESCAPE = "_x3a"
SORT_PREFIX = "sort_"

# Literal field naming the index a document belongs to; shared by all namespaces
DOCUMENT_TAG_FIELD = "search_index"


def build_namespace(index_id: str, site_id: str | None = None) -> str:
    """Namespace for an index; shared domains put the site id in front."""
    if site_id:
        return f"{site_id}{DELIMITER}{index_id}"
    return index_id


def encode(namespace: str, raw_name: str) -> str:
    return f"{namespace}{DELIMITER}{raw_name}".replace(":", COLON_ESCAPE)


def decode(namespace: str, encoded_name: str) -> str:
    prefix = f"{namespace}{DELIMITER}".replace(":", COLON_ESCAPE)
    if encoded_name.startswith(prefix):
        encoded_name = encoded_name[len(prefix) :]
    return encoded_name.replace(COLON_ESCAPE, ":")


def belongs_to(namespace: str, encoded_name: str) -> bool:
    """Whether ``encoded_name`` carries this namespace's prefix."""
    return encoded_name.startswith(f"{namespace}{DELIMITER}".replace(":", COLON_ESCAPE))


def owned_by(namespace: str, encoded_name: str, known_namespaces: Iterable[str] = ()) -> bool:
    """Whether ``encoded_name`` belongs to ``namespace`` and to no longer namespace.

    Namespaces are joined to names with the same delimiter they may
    contain, so ``shop_archive_title`` carries the prefix of both ``shop``
    and ``shop_archive``.  The longest known namespace owns the name.
    """
    if not belongs_to(namespace, encoded_name):
        return False
    return not any(
        len(other) > len(namespace) and belongs_to(other, encoded_name) for other in known_namespaces
    )


def sort_name(raw_name: str) -> str:
    """Abstract name of the sort auxiliary derived from ``raw_name``."""
    return f"{SORT_PREFIX}{raw_name}"


def encode_document_id(namespace: str, doc_id: str | int) -> str:
    return f"{namespace}{DELIMITER}{doc_id}"


def decode_document_id(namespace: str, encoded_id: str) -> str:
    prefix = f"{namespace}{DELIMITER}"
    if encoded_id.startswith(prefix):
        return encoded_id[len(prefix) :]
    return encoded_id
