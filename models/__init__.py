# -------------------------
# Enums
# -------------------------
from .enums import (
    UserRole,
    Action,
    ResourceKind,
    DecisionReason,
    RelationshipStatus,
    PaymentStatus,
)

# -------------------------
# Access-control models
# -------------------------
from .subject import Subject
from .resource import ResourceDescriptor
from .decision import Decision
from .relationship import RelationshipQuery
from .audit import AccessContext, AccessLogEntry

# -------------------------
# Request payloads
# -------------------------
from .document import DocumentUpdate, DocumentShareRequest
from .payment import PaymentUpdate
from .message import ThreadCreate, MessageCreate
from .tenant import TenantCreate, TenantUpdate
from .company_group import CompanyGroupCreate, CompanyGroupUpdate
from .webhook import WebhookCreate, WebhookRead, WebhookUpdate
from .gdpr import AccountDeleteRequest, ConsentRequest
