# ============================================
# CENTRALIZED ACCESS RULE TABLES
# ============================================
# Every resource-kind quirk lives here as data.
# core.policy reads these tables; it never branches on a kind by name.

from models.enums import Action, ResourceKind, UserRole


# Everything that changes or creates state
WRITE_ACTIONS = frozenset({
    Action.create,
    Action.update,
    Action.delete,
    Action.share,
    Action.administer,
})

READ_ACTIONS = frozenset({
    Action.view,
    Action.download,
})


# ============================================
# ROLE GATE: (role, kind) → forbidden actions
# ============================================
# Checked before ownership: a match here denies with ROLE_FORBIDDEN
# no matter who owns the record.
ROLE_FORBIDDEN_ACTIONS = {

    # =====================================================
    # VENDOR: counterpart side of every relationship
    # =====================================================
    UserRole.vendor: {
        # Statements and payments are issued by the company side
        ResourceKind.payment: WRITE_ACTIONS,
        ResourceKind.statement: WRITE_ACTIONS,

        # Vendors may upload, edit and remove their own documents
        ResourceKind.document: frozenset({Action.administer}),

        # Only the company side opens (or removes) a thread
        ResourceKind.message_thread: frozenset({
            Action.create,
            Action.delete,
            Action.administer,
        }),

        ResourceKind.webhook: WRITE_ACTIONS,
        ResourceKind.tenant: WRITE_ACTIONS,
        ResourceKind.company_group: WRITE_ACTIONS,
        ResourceKind.user_account: frozenset({Action.administer}),
    },

    # =====================================================
    # COMPANY USER: day-to-day work, no settings
    # =====================================================
    UserRole.company_user: {
        ResourceKind.webhook: WRITE_ACTIONS,
        ResourceKind.tenant: WRITE_ACTIONS,
        ResourceKind.company_group: WRITE_ACTIONS,
        ResourceKind.user_account: frozenset({Action.administer}),
    },

    # =====================================================
    # COMPANY ADMIN: nothing categorically forbidden
    # =====================================================
    UserRole.company_admin: {},
}


# ============================================
# COUNTERPART ACCESS: what the *other* side may do
# ============================================
# Caps the vendor-shared and reverse vendor-owned branches.
# Kinds missing here grant the counterpart nothing.
COUNTERPART_ACTIONS = {
    ResourceKind.document: READ_ACTIONS,
    ResourceKind.statement: READ_ACTIONS,
    ResourceKind.payment: READ_ACTIONS,
    ResourceKind.message_thread: frozenset({Action.view, Action.reply}),
}


# ============================================
# TENANT-WIDE KINDS: no owning organization
# ============================================
# Any subject of the same tenant passes the ownership step;
# the role gate still applies.
TENANT_WIDE_KINDS = frozenset({
    ResourceKind.tenant,
    ResourceKind.company_group,
})


# ============================================
# SELF-AUTHORED DELETE: creator may delete
# ============================================
SELF_AUTHORED_DELETE_KINDS = frozenset({
    ResourceKind.document,
})


def forbidden_actions(role: UserRole, kind: ResourceKind) -> frozenset:
    return ROLE_FORBIDDEN_ACTIONS.get(role, {}).get(kind, frozenset())


def is_role_forbidden(role: UserRole, kind: ResourceKind, action: Action) -> bool:
    return action in forbidden_actions(role, kind)


def counterpart_actions(kind: ResourceKind) -> frozenset:
    return COUNTERPART_ACTIONS.get(kind, frozenset())
