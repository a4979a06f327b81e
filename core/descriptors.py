# core/descriptors.py

"""
Resource descriptor builders.

One mapping function per resource kind: persisted Supabase row ->
ResourceDescriptor. Field selection and null normalization only; a missing
required field raises MalformedResourceError instead of being defaulted.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from core.errors import MalformedResourceError
from models.enums import ResourceKind
from models.resource import ResourceDescriptor
from models.subject import Subject


# -----------------------------------------------------
# Field helpers
# -----------------------------------------------------
def _optional_id(value: Any) -> Optional[str]:
    """None, empty or whitespace-only ids normalize to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_id(record: Mapping[str, Any], field: str, kind: ResourceKind) -> str:
    value = _optional_id(record.get(field))
    if value is None:
        raise MalformedResourceError(kind.value, field, _optional_id(record.get("id")))
    return value


def _flag(record: Mapping[str, Any], field: str, kind: ResourceKind) -> bool:
    value = record.get(field)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise MalformedResourceError(kind.value, field, _optional_id(record.get("id")))
    return value


def _require_mapping(record: Any, kind: ResourceKind) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise MalformedResourceError(kind.value, "<record>")
    return record


# -----------------------------------------------------
# Per-kind builders
# -----------------------------------------------------
def document_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    kind = ResourceKind.document
    record = _require_mapping(record, kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=_optional_id(record.get("id")),
        tenant_id=_required_id(record, "tenant_id", kind),
        owner_organization_id=_required_id(record, "organization_id", kind),
        vendor_organization_id=_optional_id(record.get("vendor_id")),
        is_shared=_flag(record, "is_shared", kind),
        creator_id=_optional_id(record.get("created_by")),
    )


def payment_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    # Payees always see their payments; there is no sharing flag
    kind = ResourceKind.payment
    record = _require_mapping(record, kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=_optional_id(record.get("id")),
        tenant_id=_required_id(record, "tenant_id", kind),
        owner_organization_id=_required_id(record, "organization_id", kind),
        vendor_organization_id=_optional_id(record.get("vendor_id")),
        is_shared=True,
    )


def statement_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    kind = ResourceKind.statement
    record = _require_mapping(record, kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=_optional_id(record.get("id")),
        tenant_id=_required_id(record, "tenant_id", kind),
        owner_organization_id=_required_id(record, "organization_id", kind),
        vendor_organization_id=_optional_id(record.get("vendor_id")),
        is_shared=_flag(record, "is_shared", kind),
    )


def message_thread_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    # A thread exists between exactly two organizations; both see it
    kind = ResourceKind.message_thread
    record = _require_mapping(record, kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=_optional_id(record.get("id")),
        tenant_id=_required_id(record, "tenant_id", kind),
        owner_organization_id=_required_id(record, "organization_id", kind),
        vendor_organization_id=_optional_id(record.get("vendor_id")),
        is_shared=True,
    )


def webhook_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    kind = ResourceKind.webhook
    record = _require_mapping(record, kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=_optional_id(record.get("id")),
        tenant_id=_required_id(record, "tenant_id", kind),
        owner_organization_id=_required_id(record, "organization_id", kind),
        creator_id=_optional_id(record.get("created_by")),
    )


def tenant_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    # The tenant row is its own tenant scope
    kind = ResourceKind.tenant
    record = _require_mapping(record, kind)
    tenant_id = _required_id(record, "id", kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=tenant_id,
        tenant_id=tenant_id,
        creator_id=_optional_id(record.get("created_by")),
    )


def company_group_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    kind = ResourceKind.company_group
    record = _require_mapping(record, kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=_optional_id(record.get("id")),
        tenant_id=_required_id(record, "tenant_id", kind),
    )


def user_account_to_descriptor(record: Mapping[str, Any]) -> ResourceDescriptor:
    # The account holder counts as the record's creator
    kind = ResourceKind.user_account
    record = _require_mapping(record, kind)
    user_id = _required_id(record, "id", kind)
    return ResourceDescriptor(
        kind=kind,
        resource_id=user_id,
        tenant_id=_required_id(record, "tenant_id", kind),
        owner_organization_id=_required_id(record, "organization_id", kind),
        creator_id=user_id,
    )


DESCRIPTOR_BUILDERS: Dict[ResourceKind, Callable[[Mapping[str, Any]], ResourceDescriptor]] = {
    ResourceKind.document: document_to_descriptor,
    ResourceKind.payment: payment_to_descriptor,
    ResourceKind.statement: statement_to_descriptor,
    ResourceKind.message_thread: message_thread_to_descriptor,
    ResourceKind.webhook: webhook_to_descriptor,
    ResourceKind.tenant: tenant_to_descriptor,
    ResourceKind.company_group: company_group_to_descriptor,
    ResourceKind.user_account: user_account_to_descriptor,
}


def build_descriptor(kind: ResourceKind, record: Mapping[str, Any]) -> ResourceDescriptor:
    """Dispatch to the builder registered for `kind`."""
    return DESCRIPTOR_BUILDERS[ResourceKind(kind)](record)


def prospective_descriptor(
    kind: ResourceKind,
    subject: Subject,
    *,
    vendor_organization_id: Optional[str] = None,
    is_shared: bool = False,
) -> ResourceDescriptor:
    """
    Descriptor for a record that does not exist yet (CREATE).
    The new row will be owned by the subject's organization and tenant.
    """
    return ResourceDescriptor(
        kind=ResourceKind(kind),
        tenant_id=subject.tenant_id,
        owner_organization_id=subject.organization_id,
        vendor_organization_id=_optional_id(vendor_organization_id),
        is_shared=is_shared,
        creator_id=subject.id,
    )
