# routers/tenants.py

from fastapi import APIRouter, Depends, HTTPException

from core.descriptors import prospective_descriptor, tenant_to_descriptor
from core.errors import not_found
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record, update_record, drop_unset
from dependencies.access import AccessGuard, get_access_guard
from models.enums import Action, ResourceKind
from models.tenant import TenantCreate, TenantUpdate

router = APIRouter(
    prefix="/tenants",
    tags=["Tenants"],
)


async def _load_current_tenant(client, guard: AccessGuard) -> dict:
    tenant = await fetch_record("tenants", guard.subject.tenant_id, client=client)
    if not tenant:
        raise not_found("Tenant")
    return tenant


@router.get("/current", summary="Get the caller's tenant")
async def get_current_tenant(guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    tenant = await _load_current_tenant(client, guard)

    if tenant.get("status", "active") != "active":
        raise not_found("Tenant")

    await guard.enforce(tenant_to_descriptor(tenant), Action.view)
    return {"tenant": tenant}


@router.patch("/current", summary="Update the caller's tenant")
async def update_current_tenant(
    payload: TenantUpdate,
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    tenant = await _load_current_tenant(client, guard)

    await guard.enforce(tenant_to_descriptor(tenant), Action.administer)

    updates = drop_unset(payload.model_dump())
    if not updates:
        raise HTTPException(400, "No fields to update")

    updated = await update_record("tenants", tenant["id"], updates, client=client)
    logger.info(f"Tenant {tenant['id']} updated by {guard.subject.id}: {sorted(updates)}")
    return {"tenant": updated}


@router.post("/", status_code=201, summary="Create a tenant")
async def create_tenant(payload: TenantCreate, guard: AccessGuard = Depends(get_access_guard)):
    """
    Company admins only. Slugs are unique across all tenants.
    """
    subject = guard.subject
    client = require_supabase_client()

    await guard.enforce(prospective_descriptor(ResourceKind.tenant, subject), Action.create)

    existing = await execute(
        client.table("tenants").select("id").eq("slug", payload.slug).limit(1),
        "Failed to check tenant slug",
    )
    if existing:
        raise HTTPException(409, "Tenant slug already exists")

    rows = await execute(
        client.table("tenants").insert(
            {
                **payload.model_dump(),
                "status": "active",
                "created_by": subject.id,
            }
        ),
        "Failed to create tenant",
    )
    if not rows:
        raise HTTPException(500, "Failed to create tenant")

    logger.info(f"Tenant {payload.slug} created by {subject.id}")
    return {"tenant": rows[0]}
