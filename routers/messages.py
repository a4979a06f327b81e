# routers/messages.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from core.descriptors import message_thread_to_descriptor, prospective_descriptor
from core.errors import not_found
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record
from dependencies.access import AccessGuard, get_access_guard
from models.enums import Action, ResourceKind, UserRole
from models.message import ThreadCreate, MessageCreate

router = APIRouter(
    prefix="/messages",
    tags=["Messages"],
)


THREAD_COLUMNS = "id, tenant_id, organization_id, vendor_id, subject, last_message_at, created_at, updated_at"
MESSAGE_COLUMNS = (
    "id, thread_id, sender_id, sender_organization_id, recipient_id, "
    "recipient_organization_id, content, read_at, created_at, updated_at, "
    "message_attachments(id, file_name, file_url, file_size, mime_type)"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _load_thread(client, thread_id: str) -> dict:
    thread = await fetch_record("message_threads", thread_id, THREAD_COLUMNS, client=client)
    if not thread:
        raise not_found("Thread")
    return thread


# -----------------------------------------------------
# GET /messages/threads
# -----------------------------------------------------
@router.get("/threads", summary="List message threads")
async def list_threads(guard: AccessGuard = Depends(get_access_guard)):
    subject = guard.subject
    client = require_supabase_client()

    query = (
        client.table("message_threads")
        .select(THREAD_COLUMNS)
        .eq("tenant_id", subject.tenant_id)
        .order("last_message_at", desc=True)
    )
    if subject.role == UserRole.vendor:
        query = query.eq("vendor_id", subject.organization_id)
    else:
        query = query.eq("organization_id", subject.organization_id)

    rows = await execute(query, "Failed to fetch threads")
    threads = await guard.filter_visible(rows, ResourceKind.message_thread)
    return {"threads": threads}


# -----------------------------------------------------
# POST /messages/threads
# Company side only, and only with an active vendor relationship
# -----------------------------------------------------
@router.post("/threads", summary="Open a thread with a vendor")
async def create_thread(payload: ThreadCreate, guard: AccessGuard = Depends(get_access_guard)):
    subject = guard.subject
    client = require_supabase_client()

    prospective = prospective_descriptor(
        ResourceKind.message_thread,
        subject,
        vendor_organization_id=payload.vendor_id,
        is_shared=True,
    )
    await guard.enforce(prospective, Action.create)

    active = await guard.oracle.is_active_relationship(
        subject.organization_id, payload.vendor_id, subject.tenant_id
    )
    if not active:
        raise HTTPException(404, "Vendor relationship not found")

    rows = await execute(
        client.table("message_threads").insert(
            {
                "tenant_id": subject.tenant_id,
                "organization_id": subject.organization_id,
                "vendor_id": payload.vendor_id,
                "subject": payload.subject,
            }
        ),
        "Failed to create thread",
    )
    if not rows:
        raise HTTPException(500, "Failed to create thread")

    logger.info(f"User {subject.id} opened thread {rows[0].get('id')} with vendor {payload.vendor_id}")
    return {"thread": rows[0]}


# -----------------------------------------------------
# GET /messages/threads/{id}
# -----------------------------------------------------
@router.get("/threads/{thread_id}", summary="Read a thread")
async def get_thread_messages(thread_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    thread = await _load_thread(client, thread_id)

    await guard.enforce(message_thread_to_descriptor(thread), Action.view)

    messages = await execute(
        client.table("messages")
        .select(MESSAGE_COLUMNS)
        .eq("thread_id", thread_id)
        .order("created_at", desc=False),
        "Failed to fetch messages",
    )

    # Mark the other side's unread messages as read
    await execute(
        client.table("messages")
        .update({"read_at": _now()})
        .eq("thread_id", thread_id)
        .neq("sender_id", guard.subject.id)
        .is_("read_at", "null"),
        "Failed to mark messages read",
    )

    return {"thread": thread, "messages": messages}


# -----------------------------------------------------
# POST /messages/threads/{id}
# -----------------------------------------------------
@router.post("/threads/{thread_id}", summary="Reply in a thread")
async def post_message(
    thread_id: str,
    payload: MessageCreate,
    guard: AccessGuard = Depends(get_access_guard),
):
    subject = guard.subject
    client = require_supabase_client()
    thread = await _load_thread(client, thread_id)

    await guard.enforce(message_thread_to_descriptor(thread), Action.reply)

    if thread.get("organization_id") == subject.organization_id:
        counterpart = thread.get("vendor_id")
    else:
        counterpart = thread.get("organization_id")

    recipient = payload.recipient_organization_id or counterpart
    if recipient != counterpart:
        raise HTTPException(400, "Recipient must be the other side of the thread")

    rows = await execute(
        client.table("messages").insert(
            {
                "thread_id": thread_id,
                "sender_id": subject.id,
                "sender_organization_id": subject.organization_id,
                "recipient_id": None,
                "recipient_organization_id": recipient,
                "content": payload.content,
            }
        ),
        "Failed to create message",
    )
    if not rows:
        raise HTTPException(500, "Failed to create message")

    await execute(
        client.table("message_threads").update({"last_message_at": _now()}).eq("id", thread_id),
        "Failed to update thread",
    )

    return {"message": rows[0]}
