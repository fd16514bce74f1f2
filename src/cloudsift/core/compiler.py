"""Query compiler — Abstract queries to the CloudSearch 2011 query string.

Parameters are emitted in a fixed order and joined with ``&``::

    q=<keywords>&bq=<filter>&return-fields=text_relevance
      &facet=<fields>&rank=<sorts>&size=<limit>&start=<offset>

``bq`` is a prefix boolean expression, e.g.
``(and shop_color:'red' (or shop_size:5 shop_size:6 ) ) ``.  Only spaces
in the assembled string are percent-encoded.

Raw responses are mapped back into a ``SearchResult`` with namespaces
stripped from document ids and facet field names.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from cloudsift.adapters.base.exceptions import QueryError, RemoteRejected
from cloudsift.core import naming
from cloudsift.core.values import is_numeric_storage, to_index_value, to_number
from cloudsift.models.fields import FieldMappingRecord, SemanticType
from cloudsift.models.query import (
    ID_SORT,
    RELEVANCE_SORT,
    AbstractQuery,
    Conjunction,
    FilterCondition,
    FilterGroup,
    KeywordGroup,
    SortSpec,
)
from cloudsift.models.result import FacetCount, SearchHit, SearchResult

MATCH_ALL = "%"
RELEVANCE_FIELD = "text_relevance"
ID_FIELD = "id"

_TOKEN_RE = re.compile(r"[^\W_]+")


# ── Keywords ─────────────────────────────────────────────────────────────────


def tokenize(text: str) -> list[str]:
    """Split on runs of anything but letters and numbers; drop duplicates."""
    seen: list[str] = []
    for token in _TOKEN_RE.findall(text):
        if token not in seen:
            seen.append(token)
    return seen


def _normalize_group(group: KeywordGroup) -> KeywordGroup | None:
    terms: list[str | KeywordGroup] = []

    def add(term: str | KeywordGroup) -> None:
        if term not in terms:
            terms.append(term)

    for term in group.terms:
        if isinstance(term, str):
            tokens = tokenize(term)
            if len(tokens) > 1:
                child: str | KeywordGroup | None = KeywordGroup(conjunction="AND", terms=tokens)
            else:
                child = tokens[0] if tokens else None
        else:
            child = _normalize_group(term)
        if child is None:
            continue
        if (
            isinstance(child, KeywordGroup)
            and child.conjunction == group.conjunction
            and child.negation == group.negation
        ):
            for nested in child.terms:
                add(nested)
        else:
            add(child)

    if not terms:
        return None
    return KeywordGroup(conjunction=group.conjunction, negation=group.negation, terms=terms)


def normalize_keywords(keywords: str | KeywordGroup | None) -> KeywordGroup | None:
    """Tokenize, de-duplicate and flatten keywords.

    A plain string becomes one AND group of its tokens.  Returns ``None``
    when nothing searchable remains.
    """
    if keywords is None:
        return None
    if isinstance(keywords, str):
        keywords = KeywordGroup(conjunction="AND", terms=[keywords])
    return _normalize_group(keywords)


def render_keywords(group: KeywordGroup | None) -> str:
    if group is None:
        return MATCH_ALL
    parts: list[str] = []
    for term in group.terms:
        if isinstance(term, str):
            parts.append(term)
        else:
            rendered = render_keywords(term)
            parts.append(rendered if term.negation or len(term.terms) == 1 else f"({rendered})")
    body = (" " if group.conjunction == "AND" else "|").join(parts)
    if group.negation:
        return f"-{body}" if len(parts) == 1 else f"-({body})"
    return body


# ── Filters ──────────────────────────────────────────────────────────────────


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _convert(condition: FilterCondition, convert: Callable[[Any], Any], value: Any) -> Any:
    try:
        return convert(value)
    except ValueError as e:
        raise QueryError(f"Invalid value {value!r} for field '{condition.field}': {e}") from e


def _range_bound(condition: FilterCondition, bound: Any, record: FieldMappingRecord | None) -> str:
    # range targets are always numeric; decimals lose their fraction
    if bound is None:
        return ""
    semantic = record.semantic_type if record is not None else None
    return str(_convert(condition, lambda value: to_number(value, semantic), bound))


def compile_condition(
    condition: FilterCondition,
    namespace: str,
    records: Mapping[str, FieldMappingRecord],
) -> str:
    """Compile one condition into a ``bq`` term.

    Raises:
        QueryError: The value cannot be converted for the field's type.
    """
    record = records.get(condition.field)
    if condition.operator == "range":
        target = condition.field
        if record is not None and record.has_sort_auxiliary:
            target = naming.sort_name(condition.field)
        low, high = condition.value
        low_bound = _range_bound(condition, low, record)
        high_bound = _range_bound(condition, high, record)
        return f"{naming.encode(namespace, target)}:{low_bound}..{high_bound}"

    value = _convert(condition, lambda raw: to_index_value(raw, record), condition.value)
    integer = record is not None and record.semantic_type == SemanticType.INTEGER.value
    if integer or is_numeric_storage(record):
        rendered = str(value)
    else:
        rendered = _quote(str(value))
    return f"{naming.encode(namespace, condition.field)}:{rendered}"


def _flatten(group: FilterGroup) -> list[FilterGroup | FilterCondition]:
    children: list[FilterGroup | FilterCondition] = []
    for child in group.children:
        if (
            isinstance(child, FilterGroup)
            and child.conjunction == group.conjunction
            and group.conjunction != Conjunction.NOT
        ):
            children.extend(_flatten(child))
        else:
            children.append(child)
    return children


def compile_filter(
    group: FilterGroup,
    namespace: str,
    records: Mapping[str, FieldMappingRecord] | None = None,
) -> str:
    """Compile a filter tree into a prefix boolean expression.

    Nested groups sharing their parent's AND/OR conjunction are merged into
    the parent; every other group keeps its own parentheses.  Empty groups
    compile to an empty string.
    """
    records = records or {}
    parts: list[str] = []
    for child in _flatten(group):
        if isinstance(child, FilterCondition):
            parts.append(compile_condition(child, namespace, records) + " ")
        else:
            parts.append(compile_filter(child, namespace, records))
    if not any(parts):
        return ""
    return f"({group.conjunction.value.lower()} {''.join(parts)}) "


# ── Sorts and facets ─────────────────────────────────────────────────────────


def compile_rank(
    sorts: Sequence[SortSpec],
    namespace: str,
    records: Mapping[str, FieldMappingRecord] | None = None,
) -> str:
    records = records or {}
    entries: list[str] = []
    for sort in sorts:
        if sort.field == RELEVANCE_SORT:
            name = RELEVANCE_FIELD
        elif sort.field == ID_SORT:
            name = ID_FIELD
        else:
            record = records.get(sort.field)
            if record is not None and not record.has_sort_auxiliary:
                name = record.encoded_name
            else:
                name = naming.encode(namespace, naming.sort_name(sort.field))
        entries.append(f"-{name}" if sort.direction == "desc" else name)
    return ",".join(entries)


def compile_facets(facets: Sequence[str], namespace: str) -> str:
    return ",".join(naming.encode(namespace, field) for field in facets if field).rstrip(",")


class QueryCompiler:
    """Compiles queries for one index namespace and decodes the responses.

    Attributes:
        namespace: Namespace of the index being queried.
        records: Stored field mappings of the index, used for value quoting,
            range targets and sort field names.
        restrict_to_index: AND every filter with the document-tag field so
            only this index's documents match on a shared domain.
    """

    def __init__(
        self,
        namespace: str,
        records: Mapping[str, FieldMappingRecord] | None = None,
        *,
        restrict_to_index: bool = False,
    ) -> None:
        self.namespace = namespace
        self.records = dict(records or {})
        self.restrict_to_index = restrict_to_index

    def compile_bq(self, filter_tree: FilterGroup | None) -> str:
        bq = compile_filter(filter_tree, self.namespace, self.records) if filter_tree else ""
        if self.restrict_to_index:
            tag = f"{naming.DOCUMENT_TAG_FIELD}:{_quote(self.namespace)} "
            bq = f"(and {tag}{bq}) "
        return bq

    def compile(self, query: AbstractQuery) -> str:
        """Compile a query into the service's query string."""
        params = [f"q={render_keywords(normalize_keywords(query.keywords))}"]

        bq = self.compile_bq(query.filter_tree)
        if bq:
            params.append(f"bq={bq}")

        params.append(f"return-fields={RELEVANCE_FIELD}")

        facets = compile_facets(query.facets, self.namespace)
        if facets:
            params.append(f"facet={facets}")

        if query.sort:
            params.append(f"rank={compile_rank(query.sort, self.namespace, self.records)}")

        if query.limit:
            params.append(f"size={query.limit}")
        params.append(f"start={query.offset}")

        return "&".join(params).replace(" ", "%20")

    def parse_response(self, raw: Any) -> SearchResult:
        """Map a raw search response into a ``SearchResult``.

        Args:
            raw: Decoded JSON body, or the body as ``str``/``bytes``.

        Raises:
            QueryError: The response is empty or not a JSON object.
            RemoteRejected: The response carries an error payload.
        """
        if raw is None:
            raise QueryError("Empty response from search service.")
        if isinstance(raw, str | bytes):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise QueryError(f"Unparseable response from search service: {e}") from e
        if not isinstance(raw, dict):
            raise QueryError("Unexpected response shape from search service.")

        if raw.get("error"):
            messages = [m.get("message", "") for m in raw.get("messages", []) if isinstance(m, dict)]
            raise RemoteRejected([m for m in messages if m] or [str(raw["error"])])

        hits_section = raw.get("hits") or {}
        hits = [
            SearchHit(
                id=naming.decode_document_id(self.namespace, str(hit.get("id", ""))),
                score=self._score(hit),
            )
            for hit in hits_section.get("hit", [])
        ]

        facets: dict[str, list[FacetCount]] = {}
        for encoded, section in (raw.get("facets") or {}).items():
            facets[naming.decode(self.namespace, encoded)] = [
                FacetCount(value=f'"{constraint.get("value", "")}"', count=int(constraint.get("count", 0)))
                for constraint in (section or {}).get("constraints", [])
            ]

        return SearchResult(
            total_count=int(hits_section.get("found", 0)),
            hits=hits,
            facets=facets,
        )

    @staticmethod
    def _score(hit: dict[str, Any]) -> float:
        value = (hit.get("data") or {}).get(RELEVANCE_FIELD)
        if isinstance(value, list):
            value = value[0] if value else None
        try:
            return float(value) if value is not None else 0.0
        except (TypeError, ValueError):
            return 0.0
