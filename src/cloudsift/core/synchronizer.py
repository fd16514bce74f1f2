"""Index synchronizer — Keeps remote field definitions in line with abstract fields.

One pass runs through these states::

    FETCH_REMOTE -> DIFF -> DELETE_OBSOLETE -> ENSURE_DOCUMENT_TAG_FIELD
                 -> ADD_OR_UPDATE_CHANGED -> TRIGGER_REINDEX -> DONE

Only a failure to fetch the remote field list aborts the pass.  Every
per-field failure is counted on the ``SyncReport`` and the pass moves
on.  A reindex is triggered only when at least one field operation
succeeded; a failed trigger leaves the structural changes in place.

Several indexes may share one remote domain: fields outside the
namespace being synchronized are never touched.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping, Sequence
from enum import Enum

from cloudsift.adapters.base.adapter import IndexAdministration
from cloudsift.adapters.base.exceptions import CloudSearchError, RemoteUnavailable
from cloudsift.core import naming
from cloudsift.core.field_mapper import FacetPredicate, FieldMapping, map_field
from cloudsift.models.document import SyncReport
from cloudsift.models.fields import (
    AbstractFieldDescriptor,
    ConcreteIndexFieldSpec,
    LiteralOptions,
    RemoteField,
    StorageType,
    build_spec,
)
from cloudsift.observability.events import EventSink, StructlogEventSink
from cloudsift.store.manager import ServerConfigStore

DOCUMENT_TAG_FIELD = naming.DOCUMENT_TAG_FIELD


class SyncState(str, Enum):
    FETCH_REMOTE = "fetch_remote"
    DIFF = "diff"
    DELETE_OBSOLETE = "delete_obsolete"
    ENSURE_DOCUMENT_TAG_FIELD = "ensure_document_tag_field"
    ADD_OR_UPDATE_CHANGED = "add_or_update_changed"
    TRIGGER_REINDEX = "trigger_reindex"
    DONE = "done"


def document_tag_spec() -> ConcreteIndexFieldSpec:
    """Literal field recording which index a document belongs to."""
    return build_spec(
        DOCUMENT_TAG_FIELD,
        StorageType.LITERAL,
        facet_enabled=False,
        result_enabled=False,
        search_enabled=True,
    )


# ── Change detection ─────────────────────────────────────────────────────────
#
# Each predicate receives the computed mapping and the remote fields of the
# namespace keyed by encoded name.  A field is changed if any predicate holds.

ChangePredicate = Callable[[FieldMapping, Mapping[str, RemoteField]], bool]


def missing_remote(mapping: FieldMapping, remote: Mapping[str, RemoteField]) -> bool:
    return mapping.primary.encoded_name not in remote


def missing_sort_auxiliary(mapping: FieldMapping, remote: Mapping[str, RemoteField]) -> bool:
    if not mapping.auxiliaries:
        return False
    return not any(aux.encoded_name in remote for aux in mapping.auxiliaries)


def storage_type_differs(mapping: FieldMapping, remote: Mapping[str, RemoteField]) -> bool:
    current = remote.get(mapping.primary.encoded_name)
    if current is None:
        return False
    return current.storage_type != mapping.primary.storage_type.value


def literal_options_differ(mapping: FieldMapping, remote: Mapping[str, RemoteField]) -> bool:
    current = remote.get(mapping.primary.encoded_name)
    if current is None or not isinstance(mapping.primary.options, LiteralOptions):
        return False
    return (
        current.facet_enabled != mapping.primary.facet_enabled
        or current.search_enabled != mapping.primary.search_enabled
    )


CHANGE_PREDICATES: tuple[ChangePredicate, ...] = (
    missing_remote,
    missing_sort_auxiliary,
    storage_type_differs,
    literal_options_differ,
)


def field_changed(mapping: FieldMapping, remote: Mapping[str, RemoteField]) -> bool:
    return any(predicate(mapping, remote) for predicate in CHANGE_PREDICATES)


def obsolete_fields(
    namespace: str,
    descriptors: Sequence[AbstractFieldDescriptor],
    remote: Sequence[RemoteField],
    known_namespaces: Collection[str] = (),
) -> list[RemoteField]:
    """Remote fields of this namespace that no abstract field accounts for.

    Fields owned by a longer namespace in ``known_namespaces`` are skipped.
    """
    wanted: set[str] = set()
    for descriptor in descriptors:
        wanted.add(descriptor.name)
        wanted.add(naming.sort_name(descriptor.name))
    return [
        field
        for field in remote
        if field.name != DOCUMENT_TAG_FIELD
        and naming.owned_by(namespace, field.name, known_namespaces)
        and naming.decode(namespace, field.name) not in wanted
    ]


class IndexSynchronizer:
    """Runs synchronization passes against one remote domain.

    Attributes:
        admin: Index-definition API of the remote domain.
        store: Server configuration store receiving computed mappings.
    """

    def __init__(
        self,
        admin: IndexAdministration,
        store: ServerConfigStore,
        sink: EventSink | None = None,
    ) -> None:
        self.admin = admin
        self.store = store
        self._sink = sink or StructlogEventSink("cloudsift.sync")

    def _enter(self, namespace: str, state: SyncState) -> None:
        self._sink.emit("sync_state", namespace=namespace, state=state.value)

    async def _fetch_remote(self, namespace: str) -> list[RemoteField]:
        try:
            fields = await self.admin.list_fields()
        except CloudSearchError as e:
            self._sink.emit("sync_aborted", namespace=namespace, error=str(e))
            raise RemoteUnavailable(f"Failed to fetch index fields: {e}") from e
        return [field for field in fields if not field.pending_deletion]

    async def _other_namespaces(self, namespace: str, known_namespaces: Collection[str]) -> set[str]:
        others = set(known_namespaces) | set(await self.store.namespaces())
        others.discard(namespace)
        return others

    @staticmethod
    def _record_failure(report: SyncReport, error: Exception) -> None:
        report.failed += 1
        if report.first_error is None:
            report.first_error = str(error)

    async def _trigger_reindex(self, namespace: str, report: SyncReport) -> None:
        try:
            await self.admin.trigger_reindex()
            report.reindexed = True
        except CloudSearchError as e:
            report.reindex_error = str(e)
            self._sink.emit("reindex_failed", namespace=namespace, error=str(e))

    async def run(
        self,
        namespace: str,
        descriptors: Sequence[AbstractFieldDescriptor],
        *,
        sort_fields: Collection[str] = (),
        range_fields: Collection[str] = (),
        is_facet: FacetPredicate | None = None,
        known_namespaces: Collection[str] = (),
    ) -> SyncReport:
        """Run one synchronization pass for a namespace.

        Args:
            namespace: Namespace of the index being synchronized.
            descriptors: Abstract fields currently declared by the index.
            sort_fields: Field names requested sortable.
            range_fields: Field names requested for range filters.
            is_facet: Facet-membership predicate.
            known_namespaces: Other namespaces on the same domain, in addition
                to those already present in the store.

        Returns:
            Aggregate counts of the pass.

        Raises:
            RemoteUnavailable: The remote field list could not be fetched.
        """
        report = SyncReport()

        self._enter(namespace, SyncState.FETCH_REMOTE)
        remote = await self._fetch_remote(namespace)

        self._enter(namespace, SyncState.DIFF)
        others = await self._other_namespaces(namespace, known_namespaces)
        obsolete = obsolete_fields(namespace, descriptors, remote, others)

        self._enter(namespace, SyncState.DELETE_OBSOLETE)
        for field in obsolete:
            try:
                await self.admin.remove_field(field.name)
                report.removed += 1
                self._sink.emit("field_removed", namespace=namespace, field=field.name)
            except CloudSearchError as e:
                self._record_failure(report, e)
                self._sink.emit("field_delete_failed", namespace=namespace, field=field.name, error=str(e))

        self._enter(namespace, SyncState.ENSURE_DOCUMENT_TAG_FIELD)
        if not any(field.name == DOCUMENT_TAG_FIELD for field in remote):
            try:
                await self.admin.add_or_update_field(document_tag_spec())
                report.added += 1
                self._sink.emit("field_added", namespace=namespace, field=DOCUMENT_TAG_FIELD)
            except CloudSearchError as e:
                self._record_failure(report, e)
                self._sink.emit("field_update_failed", namespace=namespace, field=DOCUMENT_TAG_FIELD, error=str(e))

        self._enter(namespace, SyncState.ADD_OR_UPDATE_CHANGED)
        own = {field.name: field for field in remote if naming.owned_by(namespace, field.name, others)}
        for descriptor in descriptors:
            mapping = map_field(
                namespace,
                descriptor,
                sort_fields=sort_fields,
                range_fields=range_fields,
                is_facet=is_facet,
            )
            if field_changed(mapping, own):
                try:
                    for spec in mapping.specs:
                        await self.admin.add_or_update_field(spec)
                        report.added += 1
                        self._sink.emit(
                            "field_added",
                            namespace=namespace,
                            field=spec.encoded_name,
                            storage_type=spec.storage_type.value,
                        )
                except CloudSearchError as e:
                    self._record_failure(report, e)
                    self._sink.emit("field_update_failed", namespace=namespace, field=descriptor.name, error=str(e))
                    continue
            await self.store.set_field_mapping(namespace, descriptor.name, mapping.record)
        await self.store.retain_fields(namespace, {d.name for d in descriptors})

        if report.changed:
            self._enter(namespace, SyncState.TRIGGER_REINDEX)
            await self._trigger_reindex(namespace, report)

        self._enter(namespace, SyncState.DONE)
        self._sink.emit("sync_finished", namespace=namespace, summary=report.summary())
        return report

    async def remove_namespace(self, namespace: str, known_namespaces: Collection[str] = ()) -> SyncReport:
        """Remove every remote field of a namespace and its stored mappings.

        Fields owned by a longer namespace sharing the prefix are kept.

        Raises:
            RemoteUnavailable: The remote field list could not be fetched.
        """
        report = SyncReport()
        remote = await self._fetch_remote(namespace)
        others = await self._other_namespaces(namespace, known_namespaces)
        for field in obsolete_fields(namespace, [], remote, others):
            try:
                await self.admin.remove_field(field.name)
                report.removed += 1
            except CloudSearchError as e:
                self._record_failure(report, e)
                self._sink.emit("field_delete_failed", namespace=namespace, field=field.name, error=str(e))
        await self.store.delete_index(namespace)
        if report.changed:
            await self._trigger_reindex(namespace, report)
        self._sink.emit("namespace_removed", namespace=namespace, summary=report.summary())
        return report
