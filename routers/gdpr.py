# routers/gdpr.py

import asyncio
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from core.descriptors import user_account_to_descriptor
from core.errors import not_found, extract_supabase_error
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record, delete_record
from dependencies.access import AccessGuard, get_access_guard
from models.enums import Action
from models.gdpr import AccountDeleteRequest, ConsentRequest

router = APIRouter(
    prefix="/gdpr",
    tags=["GDPR"],
)


async def _load_account(client, user_id: str) -> dict:
    account = await fetch_record("users", user_id, client=client)
    if not account:
        raise not_found("User")
    return account


def _target_action(guard: AccessGuard, target_user_id: str, own_action: Action) -> Action:
    """Own account uses `own_action`; anyone else's account needs ADMINISTER."""
    return own_action if target_user_id == guard.subject.id else Action.administer


# -----------------------------------------------------
# GET /gdpr/export
# Right of access
# -----------------------------------------------------
@router.get("/export", summary="Export personal data")
async def export_user_data(
    user_id: Optional[str] = Query(None, description="Defaults to the caller's own account"),
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    target_id = user_id or guard.subject.id
    account = await _load_account(client, target_id)

    await guard.enforce(
        user_account_to_descriptor(account),
        _target_action(guard, target_id, Action.download),
    )

    org_id = account["organization_id"]

    documents = await execute(
        client.table("documents")
        .select("id, name, category, created_at")
        .eq("tenant_id", account["tenant_id"])
        .or_(f"organization_id.eq.{org_id},created_by.eq.{target_id}")
        .order("created_at", desc=True),
        "Failed to export documents",
    )
    payments = await execute(
        client.table("payments")
        .select("id, amount, currency, status, created_at")
        .eq("tenant_id", account["tenant_id"])
        .eq("vendor_id", org_id)
        .order("created_at", desc=True),
        "Failed to export payments",
    )
    messages = await execute(
        client.table("messages")
        .select("id, content, created_at")
        .or_(f"sender_id.eq.{target_id},recipient_id.eq.{target_id}")
        .order("created_at", desc=True),
        "Failed to export messages",
    )

    export = {
        "user": {
            "id": account["id"],
            "email": account.get("email"),
            "role": account.get("role"),
            "organization_id": org_id,
            "created_at": account.get("created_at"),
            "updated_at": account.get("updated_at"),
        },
        "documents": documents,
        "payments": payments,
        "messages": [
            {**m, "content": (m.get("content") or "")[:100]} for m in messages
        ],
    }

    logger.info(f"User data exported: user={target_id} by={guard.subject.id}")

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return JSONResponse(
        content=export,
        headers={"Content-Disposition": f'attachment; filename="user-data-{target_id}-{stamp}.json"'},
    )


# -----------------------------------------------------
# POST /gdpr/delete
# Right to be forgotten
# -----------------------------------------------------
@router.post("/delete", summary="Delete an account and its personal data")
async def delete_account(payload: AccountDeleteRequest, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    target_id = payload.user_id or guard.subject.id
    account = await _load_account(client, target_id)

    await guard.enforce(
        user_account_to_descriptor(account),
        _target_action(guard, target_id, Action.delete),
    )

    if payload.confirm != "DELETE":
        raise HTTPException(
            400,
            "Account deletion requires explicit confirmation. Send { \"confirm\": \"DELETE\" }",
        )

    await execute(
        client.table("user_activity_logs").delete().eq("user_id", target_id),
        "Failed to delete activity logs",
    )
    await execute(
        client.table("user_preferences").delete().eq("user_id", target_id),
        "Failed to delete preferences",
    )
    # Audit rows are kept, only detached from the person
    await execute(
        client.table("audit_logs").update({"user_id": None}).eq("user_id", target_id),
        "Failed to anonymize audit logs",
    )
    await delete_record("users", target_id, client=client)

    try:
        await asyncio.to_thread(client.auth.admin.delete_user, target_id)
    except Exception as e:
        logger.error(f"Failed to delete auth user {target_id}: {extract_supabase_error(e)}")

    logger.info(f"User account deleted via GDPR request: user={target_id} by={guard.subject.id}")
    return {"success": True, "message": "Account and all associated data have been deleted"}


# -----------------------------------------------------
# GET /gdpr/consent
# -----------------------------------------------------
@router.get("/consent", summary="Privacy policy consent status")
async def get_consent_status(guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    account = await _load_account(client, guard.subject.id)

    await guard.enforce(user_account_to_descriptor(account), Action.view)

    latest = await execute(
        client.table("privacy_consents")
        .select("policy_version, accepted_at")
        .eq("user_id", account["id"])
        .order("accepted_at", desc=True)
        .limit(1),
        "Failed to fetch consent status",
    )
    consent = latest[0] if latest else {}
    return {
        "privacy_policy_accepted": bool(latest),
        "last_accepted_version": consent.get("policy_version"),
        "last_accepted_at": consent.get("accepted_at"),
    }


# -----------------------------------------------------
# POST /gdpr/consent
# -----------------------------------------------------
@router.post("/consent", summary="Record privacy policy acceptance")
async def record_consent(payload: ConsentRequest, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    account = await _load_account(client, guard.subject.id)

    await guard.enforce(user_account_to_descriptor(account), Action.update)

    await execute(
        client.table("privacy_consents").insert(
            {
                "user_id": account["id"],
                "policy_version": payload.version,
                "accepted_at": datetime.now(timezone.utc).isoformat(),
            }
        ),
        "Failed to record consent",
    )

    logger.info(f"Privacy policy {payload.version} accepted by {account['id']}")
    return {"success": True, "message": "Privacy policy acceptance recorded"}
