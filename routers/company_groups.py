# routers/company_groups.py

from fastapi import APIRouter, Depends, HTTPException

from core.descriptors import company_group_to_descriptor, prospective_descriptor
from core.errors import not_found
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record, update_record, delete_record
from dependencies.access import AccessGuard, get_access_guard
from models.company_group import CompanyGroupCreate, CompanyGroupUpdate
from models.enums import Action, ResourceKind

router = APIRouter(
    prefix="/company-groups",
    tags=["Company Groups"],
)


GROUP_COLUMNS = "id, tenant_id, name, description, parent_group_id, settings, created_at, updated_at"


async def _load_group(client, group_id: str) -> dict:
    group = await fetch_record("company_groups", group_id, GROUP_COLUMNS, client=client)
    if not group:
        raise not_found("Company group")
    return group


async def _require_parent_in_tenant(client, parent_id: str, tenant_id: str) -> None:
    parent = await fetch_record("company_groups", parent_id, "id, tenant_id", client=client)
    if not parent or parent.get("tenant_id") != tenant_id:
        raise HTTPException(404, "Parent company group not found")


# -----------------------------------------------------
# GET /company-groups
# -----------------------------------------------------
@router.get("/", summary="List the tenant's company groups")
async def list_company_groups(guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()

    rows = await execute(
        client.table("company_groups")
        .select(GROUP_COLUMNS)
        .eq("tenant_id", guard.subject.tenant_id)
        .order("name", desc=False),
        "Failed to fetch company groups",
    )
    groups = await guard.filter_visible(rows, ResourceKind.company_group)
    return {"company_groups": groups}


# -----------------------------------------------------
# POST /company-groups
# -----------------------------------------------------
@router.post("/", status_code=201, summary="Create a company group")
async def create_company_group(
    payload: CompanyGroupCreate,
    guard: AccessGuard = Depends(get_access_guard),
):
    subject = guard.subject
    client = require_supabase_client()

    await guard.enforce(prospective_descriptor(ResourceKind.company_group, subject), Action.create)

    existing = await execute(
        client.table("company_groups")
        .select("id")
        .eq("tenant_id", subject.tenant_id)
        .eq("name", payload.name)
        .limit(1),
        "Failed to check company group name",
    )
    if existing:
        raise HTTPException(409, "Company group name already exists in this tenant")

    if payload.parent_group_id:
        await _require_parent_in_tenant(client, payload.parent_group_id, subject.tenant_id)

    rows = await execute(
        client.table("company_groups").insert(
            {
                "tenant_id": subject.tenant_id,
                "name": payload.name,
                "description": payload.description,
                "parent_group_id": payload.parent_group_id,
                "settings": payload.settings,
                "created_by": subject.id,
            }
        ),
        "Failed to create company group",
    )
    if not rows:
        raise HTTPException(500, "Failed to create company group")

    logger.info(f"Company group {rows[0].get('id')} created by {subject.id}")
    return {"company_group": rows[0]}


# -----------------------------------------------------
# GET /company-groups/{id}
# -----------------------------------------------------
@router.get("/{group_id}", summary="Get a company group and its organizations")
async def get_company_group(group_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    group = await _load_group(client, group_id)

    await guard.enforce(company_group_to_descriptor(group), Action.view)

    organizations = await execute(
        client.table("organizations")
        .select("id, name, type")
        .eq("company_group_id", group_id)
        .eq("tenant_id", group["tenant_id"]),
        "Failed to fetch group organizations",
    )
    return {"company_group": {**group, "organizations": organizations}}


# -----------------------------------------------------
# PATCH /company-groups/{id}
# -----------------------------------------------------
@router.patch("/{group_id}", summary="Update a company group")
async def update_company_group(
    group_id: str,
    payload: CompanyGroupUpdate,
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    group = await _load_group(client, group_id)

    await guard.enforce(company_group_to_descriptor(group), Action.administer)

    # exclude_unset: an explicit null parent_group_id detaches the group
    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates and not updates["name"]:
        updates.pop("name")
    if "settings" in updates and updates["settings"] is None:
        updates.pop("settings")

    parent_id = updates.get("parent_group_id")
    if parent_id:
        if parent_id == group_id:
            raise HTTPException(400, "A company group cannot be its own parent")
        await _require_parent_in_tenant(client, parent_id, group["tenant_id"])

    if not updates:
        raise HTTPException(400, "No fields to update")

    updated = await update_record("company_groups", group_id, updates, client=client)
    return {"company_group": updated}


# -----------------------------------------------------
# DELETE /company-groups/{id}
# -----------------------------------------------------
@router.delete("/{group_id}", summary="Delete an unused company group")
async def delete_company_group(group_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    group = await _load_group(client, group_id)

    await guard.enforce(company_group_to_descriptor(group), Action.administer)

    members = await execute(
        client.table("organizations").select("id").eq("company_group_id", group_id).limit(1),
        "Failed to check group organizations",
    )
    if members:
        raise HTTPException(400, "Cannot delete company group with associated organizations")

    await delete_record("company_groups", group_id, client=client)
    logger.info(f"Company group {group_id} deleted by {guard.subject.id}")
    return {"success": True}
