# routers/documents.py

import asyncio
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import RedirectResponse

from core.config import settings
from core.descriptors import document_to_descriptor, prospective_descriptor
from core.errors import not_found, handle_supabase_error
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record, update_record, delete_record, drop_unset
from dependencies.access import AccessGuard, get_access_guard
from models.document import DocumentUpdate, DocumentShareRequest
from models.enums import Action, ResourceKind, UserRole

router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
)


async def _load_document(client, document_id: str) -> dict:
    document = await fetch_record("documents", document_id, client=client)
    if not document:
        raise not_found("Document")
    return document


def _storage_path(document: dict) -> str:
    """
    Storage key under the documents bucket.
    file_url may be a full Supabase object URL or a bare path.
    """
    file_url = document.get("file_url") or ""
    marker = f"/storage/v1/object/{settings.DOCUMENTS_BUCKET}/"
    if marker in file_url:
        return file_url.split(marker, 1)[1].split("?", 1)[0]
    if file_url.startswith("http"):
        return f"{document['organization_id']}/{file_url.rstrip('/').split('/')[-1]}"
    return file_url.lstrip("/")


async def _require_counterpart(guard: AccessGuard, counterpart_id: str) -> None:
    """Naming a counterpart organization needs an active relationship with it."""
    subject = guard.subject
    if subject.role == UserRole.vendor:
        company_id, vendor_id = counterpart_id, subject.organization_id
    else:
        company_id, vendor_id = subject.organization_id, counterpart_id

    if not await guard.oracle.is_active_relationship(company_id, vendor_id, subject.tenant_id):
        raise HTTPException(404, "Vendor relationship not found")


# -----------------------------------------------------
# GET /documents
# -----------------------------------------------------
@router.get("/", summary="List documents visible to the caller")
async def list_documents(
    shared_only: bool = Query(False, description="Only documents shared across the relationship"),
    guard: AccessGuard = Depends(get_access_guard),
):
    subject = guard.subject
    client = require_supabase_client()

    query = (
        client.table("documents")
        .select("*")
        .eq("tenant_id", subject.tenant_id)
        .order("created_at", desc=True)
    )
    # Candidate rows only; the evaluator makes the per-row decision
    query = query.or_(
        f"organization_id.eq.{subject.organization_id},vendor_id.eq.{subject.organization_id}"
    )
    if shared_only:
        query = query.eq("is_shared", True)

    rows = await execute(query, "Failed to list documents")
    documents = await guard.filter_visible(rows, ResourceKind.document)
    return {"documents": documents}


# -----------------------------------------------------
# POST /documents
# Multipart upload: file goes to storage, row keeps the storage key
# -----------------------------------------------------
@router.post("/", status_code=201, summary="Upload a document")
async def upload_document(
    file: UploadFile = File(...),
    name: str = Form(...),
    category: Optional[str] = Form(None),
    vendor_id: Optional[str] = Form(None),
    is_shared: bool = Form(False),
    guard: AccessGuard = Depends(get_access_guard),
):
    subject = guard.subject
    client = require_supabase_client()
    vendor_id = (vendor_id or "").strip() or None

    prospective = prospective_descriptor(
        ResourceKind.document,
        subject,
        vendor_organization_id=vendor_id,
        is_shared=is_shared,
    )
    await guard.enforce(prospective, Action.create)

    if vendor_id:
        await _require_counterpart(guard, vendor_id)

    content = await file.read()
    if not content or not name.strip():
        raise HTTPException(400, "File and name are required")

    extension = ""
    if file.filename and "." in file.filename:
        extension = file.filename.rsplit(".", 1)[1].lower()
    category = category or "other"
    path = (
        f"{subject.tenant_id}/{subject.organization_id}/{category}/"
        f"{int(time.time() * 1000)}{'.' + extension if extension else ''}"
    )

    bucket = client.storage.from_(settings.DOCUMENTS_BUCKET)
    content_type = file.content_type or "application/octet-stream"
    try:
        await asyncio.to_thread(
            bucket.upload,
            path,
            content,
            {"content-type": content_type, "cache-control": "3600", "upsert": "false"},
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to upload document")

    try:
        rows = await execute(
            client.table("documents").insert(
                {
                    "name": name.strip(),
                    "type": extension,
                    "category": category,
                    "file_url": path,
                    "file_size": len(content),
                    "mime_type": content_type,
                    "organization_id": subject.organization_id,
                    "tenant_id": subject.tenant_id,
                    "vendor_id": vendor_id,
                    "is_shared": is_shared,
                    "created_by": subject.id,
                }
            ),
            "Failed to create document",
        )
    except HTTPException:
        # No row, no object
        try:
            await asyncio.to_thread(bucket.remove, [path])
        except Exception as e:
            logger.warning(f"Failed to remove orphaned upload {path}: {e}")
        raise

    if not rows:
        raise HTTPException(500, "Failed to create document")

    logger.info(f"User {subject.id} uploaded document {rows[0].get('id')} ({len(content)} bytes)")
    return {"document": rows[0]}


# -----------------------------------------------------
# GET /documents/{id}
# -----------------------------------------------------
@router.get("/{document_id}", summary="Get one document")
async def get_document(document_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    document = await _load_document(client, document_id)

    await guard.enforce(document_to_descriptor(document), Action.view)
    return {"document": document}


# -----------------------------------------------------
# GET /documents/{id}/download
# Redirects to a short-lived signed storage URL
# -----------------------------------------------------
@router.get("/{document_id}/download", summary="Download a document")
async def download_document(document_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    document = await _load_document(client, document_id)

    await guard.enforce(document_to_descriptor(document), Action.download)

    file_url = document.get("file_url")
    if not file_url:
        raise HTTPException(404, "Document has no file")

    if file_url.startswith("http") and "/storage/v1/object/" not in file_url:
        return RedirectResponse(file_url)

    try:
        signed = await asyncio.to_thread(
            client.storage.from_(settings.DOCUMENTS_BUCKET).create_signed_url,
            _storage_path(document),
            settings.SIGNED_URL_TTL_SECONDS,
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to sign document URL")

    signed_url = None
    if isinstance(signed, dict):
        signed_url = signed.get("signedURL") or signed.get("signedUrl")
    if not signed_url:
        raise HTTPException(500, "Failed to sign document URL")
    return RedirectResponse(signed_url)


# -----------------------------------------------------
# PATCH /documents/{id}
# -----------------------------------------------------
@router.patch("/{document_id}", summary="Update document metadata")
async def update_document(
    document_id: str,
    payload: DocumentUpdate,
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    document = await _load_document(client, document_id)

    await guard.enforce(document_to_descriptor(document), Action.update)

    updates = drop_unset(payload.model_dump())
    if not updates:
        raise HTTPException(400, "No fields to update")

    updated = await update_record("documents", document_id, updates, client=client)
    return {"document": updated}


# -----------------------------------------------------
# POST /documents/{id}/share
# -----------------------------------------------------
@router.post("/{document_id}/share", summary="Share or unshare with the vendor")
async def share_document(
    document_id: str,
    payload: DocumentShareRequest,
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    document = await _load_document(client, document_id)

    await guard.enforce(document_to_descriptor(document), Action.share)

    updated = await update_record(
        "documents", document_id, {"is_shared": payload.is_shared}, client=client
    )
    logger.info(
        f"User {guard.subject.id} set is_shared={payload.is_shared} on document {document_id}"
    )
    return {"document": updated}


# -----------------------------------------------------
# DELETE /documents/{id}
# Removes the stored file first, then the row
# -----------------------------------------------------
@router.delete("/{document_id}", summary="Delete a document")
async def delete_document(document_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    document = await _load_document(client, document_id)

    await guard.enforce(document_to_descriptor(document), Action.delete)

    if document.get("file_url"):
        try:
            await asyncio.to_thread(
                client.storage.from_(settings.DOCUMENTS_BUCKET).remove, [_storage_path(document)]
            )
        except Exception as e:
            # Orphaned objects are reclaimed by retention; the row delete proceeds
            logger.warning(f"Failed to remove stored file for document {document_id}: {e}")

    await delete_record("documents", document_id, client=client)
    return {"success": True}
