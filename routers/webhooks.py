# routers/webhooks.py

import secrets

from fastapi import APIRouter, Depends, HTTPException

from core.descriptors import prospective_descriptor, webhook_to_descriptor
from core.errors import not_found
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record, update_record, delete_record, drop_unset
from dependencies.access import AccessGuard, get_access_guard
from models.enums import Action, ResourceKind
from models.webhook import WebhookCreate, WebhookRead, WebhookUpdate

router = APIRouter(
    prefix="/webhooks",
    tags=["Webhooks"],
)


def _public(row: dict) -> dict:
    """Strip the signing secret and internal columns."""
    return WebhookRead.model_validate(row).model_dump(mode="json")


async def _load_webhook(client, webhook_id: str) -> dict:
    webhook = await fetch_record("webhooks", webhook_id, client=client)
    if not webhook:
        raise not_found("Webhook")
    return webhook


@router.get("/", summary="List the organization's webhooks")
async def list_webhooks(guard: AccessGuard = Depends(get_access_guard)):
    subject = guard.subject
    client = require_supabase_client()

    rows = await execute(
        client.table("webhooks")
        .select("*")
        .eq("tenant_id", subject.tenant_id)
        .eq("organization_id", subject.organization_id)
        .order("created_at", desc=True),
        "Failed to fetch webhooks",
    )
    webhooks = await guard.filter_visible(rows, ResourceKind.webhook)
    return {"webhooks": [_public(w) for w in webhooks]}


@router.post("/", status_code=201, summary="Register a webhook")
async def create_webhook(payload: WebhookCreate, guard: AccessGuard = Depends(get_access_guard)):
    """
    Admin only. The signing secret is returned in this response and never again.
    """
    subject = guard.subject
    client = require_supabase_client()

    await guard.enforce(prospective_descriptor(ResourceKind.webhook, subject), Action.create)

    secret = secrets.token_hex(32)
    rows = await execute(
        client.table("webhooks").insert(
            {
                "tenant_id": subject.tenant_id,
                "organization_id": subject.organization_id,
                "url": payload.url,
                "events": payload.events,
                "secret": secret,
                "enabled": True,
                "created_by": subject.id,
            }
        ),
        "Failed to create webhook",
    )
    if not rows:
        raise HTTPException(500, "Failed to create webhook")

    logger.info(f"Webhook {rows[0].get('id')} registered by {subject.id} for {payload.events}")
    return {"webhook": {**_public(rows[0]), "secret": secret}}


@router.patch("/{webhook_id}", summary="Update a webhook")
async def update_webhook(
    webhook_id: str,
    payload: WebhookUpdate,
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    webhook = await _load_webhook(client, webhook_id)

    await guard.enforce(webhook_to_descriptor(webhook), Action.update)

    updates = drop_unset(payload.model_dump())
    if not updates:
        raise HTTPException(400, "No fields to update")

    updated = await update_record("webhooks", webhook_id, updates, client=client)
    if not updated:
        raise not_found("Webhook")
    return {"webhook": _public(updated)}


@router.delete("/{webhook_id}", summary="Delete a webhook")
async def delete_webhook(webhook_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    webhook = await _load_webhook(client, webhook_id)

    await guard.enforce(webhook_to_descriptor(webhook), Action.delete)

    await delete_record("webhooks", webhook_id, client=client)
    return {"success": True}
