from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class UserRole(BaseStrEnum):
    """Role stored on the users row. Never read from token metadata."""

    vendor = "vendor"
    company_admin = "company_admin"
    company_user = "company_user"


# -----------------------------------------------------
# ACTION
# -----------------------------------------------------
class Action(BaseStrEnum):
    """What a subject is trying to do with a resource."""

    view = "view"
    download = "download"
    update = "update"
    delete = "delete"
    share = "share"
    administer = "administer"
    create = "create"
    reply = "reply"  # post a message into an existing thread


# -----------------------------------------------------
# RESOURCE KIND
# -----------------------------------------------------
class ResourceKind(BaseStrEnum):
    """Access-controlled record types."""

    document = "document"
    payment = "payment"
    statement = "statement"
    message_thread = "message_thread"
    webhook = "webhook"
    tenant = "tenant"
    company_group = "company_group"
    user_account = "user_account"


# -----------------------------------------------------
# DECISION REASON
# -----------------------------------------------------
class DecisionReason(BaseStrEnum):
    """OK for allows, otherwise exactly one denial code."""

    ok = "OK"
    tenant_mismatch = "TENANT_MISMATCH"
    role_forbidden = "ROLE_FORBIDDEN"
    not_owner = "NOT_OWNER"
    not_shared = "NOT_SHARED"
    no_active_relationship = "NO_ACTIVE_RELATIONSHIP"
    not_creator = "NOT_CREATOR"


# -----------------------------------------------------
# VENDOR RELATIONSHIP STATUS
# -----------------------------------------------------
class RelationshipStatus(BaseStrEnum):
    """Only active relationships count for access and discovery."""

    active = "active"
    inactive = "inactive"
    pending = "pending"


# -----------------------------------------------------
# PAYMENT STATUS
# -----------------------------------------------------
class PaymentStatus(BaseStrEnum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
