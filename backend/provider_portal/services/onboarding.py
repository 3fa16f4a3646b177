"""Onboarding draft lifecycle.

Handles:
  - Looking up the caller's open draft (most recent incomplete one)
  - Saving the accumulated step data, creating the draft on first save
  - Completing the draft: minting a provider id, closing the draft, and
    moving its uploaded documents from temp/ to the provider's folder
  - Recording document uploads against the open draft

Completion is authoritative. A document that fails to move is logged
and marked `failed`; the draft stays completed and the other documents
still move. The completed draft is committed before any file moves,
so a later failure cannot reopen a draft whose temp files are gone.
"""

import logging
import secrets
import time
from pathlib import PurePath

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from provider_portal.middleware.exceptions import ResourceNotFoundError
from provider_portal.models.onboarding import (
    FINAL_STEP,
    OnboardingDraft,
    OnboardingStep,
    RelocationStatus,
    UploadedDocument,
)
from provider_portal.schemas.onboarding import OnboardingStepData, UploadDocumentRequest
from provider_portal.services.notifier import (
    DOCUMENT_UPLOADED,
    ONBOARDING_COMPLETED,
    OnboardingNotifier,
)
from provider_portal.services.storage import ObjectStorage, provider_key, temp_key

logger = logging.getLogger(__name__)

NO_ACTIVE_DRAFT = "No active onboarding draft found"
DEFAULT_MIME_TYPE = "application/octet-stream"


# ── Identifiers ──────────────────────────────────────────────

async def _generate_provider_id(db: AsyncSession) -> str:
    """PROV_<32 hex chars>, re-drawn until unused."""
    while True:
        candidate = f"PROV_{secrets.token_hex(16)}"
        taken = (
            await db.execute(
                select(func.count(OnboardingDraft.id)).where(
                    OnboardingDraft.provider_id == candidate
                )
            )
        ).scalar()
        if not taken:
            return candidate


def generate_stored_filename(original_filename: str) -> str:
    """<epoch ms>_<random>.<original extension>"""
    extension = PurePath(original_filename).suffix.lstrip(".") or "bin"
    return f"{int(time.time() * 1000)}_{secrets.token_hex(6)}.{extension}"


# ── Drafts ───────────────────────────────────────────────────

async def get_active_draft(db: AsyncSession, user_id: int) -> OnboardingDraft | None:
    result = await db.execute(
        select(OnboardingDraft)
        .where(
            OnboardingDraft.user_id == user_id,
            OnboardingDraft.is_completed == False,  # noqa: E712
        )
        .order_by(OnboardingDraft.created_at.desc(), OnboardingDraft.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_completed_drafts(db: AsyncSession, user_id: int) -> list[OnboardingDraft]:
    result = await db.execute(
        select(OnboardingDraft)
        .where(
            OnboardingDraft.user_id == user_id,
            OnboardingDraft.is_completed == True,  # noqa: E712
        )
        .order_by(OnboardingDraft.created_at.desc(), OnboardingDraft.id.desc())
    )
    return list(result.scalars().all())


async def save_draft(
    db: AsyncSession,
    user_id: int,
    step_data: OnboardingStepData,
    current_step: OnboardingStep,
) -> OnboardingDraft:
    """Replace the open draft's step data wholesale, or open a new draft."""
    draft = await get_active_draft(db, user_id)
    if draft:
        draft.step_data = step_data.to_storage()
        draft.current_step = current_step.value
    else:
        draft = OnboardingDraft(
            user_id=user_id,
            step_data=step_data.to_storage(),
            current_step=current_step.value,
            is_completed=False,
        )
        db.add(draft)

    await db.flush()
    await db.refresh(draft)
    return draft


async def complete_draft(
    db: AsyncSession,
    user_id: int,
    final_step_data: OnboardingStepData,
    storage: ObjectStorage,
    notifier: OnboardingNotifier,
) -> OnboardingDraft:
    draft = await get_active_draft(db, user_id)
    if not draft:
        raise ResourceNotFoundError(NO_ACTIVE_DRAFT)

    draft.step_data = final_step_data.to_storage()
    draft.current_step = FINAL_STEP.value
    draft.is_completed = True
    draft.provider_id = await _generate_provider_id(db)
    # Committed before any object is moved out of temp/
    await db.commit()
    await db.refresh(draft)

    documents = await list_documents(db, draft.id)
    moved, failed = await relocate_documents(documents, draft.provider_id, storage)
    await db.flush()

    logger.info(
        f"Onboarding draft {draft.id} completed as {draft.provider_id}",
        extra={"draft_id": draft.id, "moved": moved, "failed": failed},
    )
    await _notify(
        notifier,
        ONBOARDING_COMPLETED,
        {
            "draftId": draft.id,
            "userId": user_id,
            "providerId": draft.provider_id,
            "documentsMoved": moved,
            "documentsFailed": failed,
        },
    )
    return draft


async def relocate_documents(
    documents: list[UploadedDocument],
    provider_id: str,
    storage: ObjectStorage,
) -> tuple[int, int]:
    """Move each document out of temp/. Returns (moved, failed) counts."""
    moved = failed = 0
    for doc in documents:
        if doc.relocation_status == RelocationStatus.MOVED.value:
            continue
        source = doc.storage_key
        destination = provider_key(
            provider_id, doc.stored_filename, doc.original_filename
        )
        try:
            data = await storage.download(source)
            await storage.upload(destination, data)
            await storage.remove(source)
        except Exception as e:
            failed += 1
            doc.relocation_status = RelocationStatus.FAILED.value
            logger.error(
                f"Failed to move file {doc.stored_filename}: {e}",
                extra={"document_id": doc.id, "provider_id": provider_id},
            )
            continue
        moved += 1
        doc.storage_key = destination
        doc.relocation_status = RelocationStatus.MOVED.value
    return moved, failed


# ── Documents ────────────────────────────────────────────────

async def list_documents(db: AsyncSession, draft_id: int) -> list[UploadedDocument]:
    result = await db.execute(
        select(UploadedDocument)
        .where(UploadedDocument.onboarding_draft_id == draft_id)
        .order_by(UploadedDocument.id)
    )
    return list(result.scalars().all())


async def upload_document(
    db: AsyncSession,
    user_id: int,
    body: UploadDocumentRequest,
    storage: ObjectStorage,
    notifier: OnboardingNotifier,
) -> UploadedDocument:
    """Store the bytes under temp/ and record them against the open draft.

    Size and MIME type are not checked here; the wizard limits both.
    """
    draft = await get_active_draft(db, user_id)
    if not draft:
        raise ResourceNotFoundError(NO_ACTIVE_DRAFT)

    content = body.decoded_file()
    stored_filename = generate_stored_filename(body.filename)
    key = temp_key(stored_filename)
    await storage.upload(key, content)

    document = UploadedDocument(
        onboarding_draft_id=draft.id,
        document_type=body.document_type,
        original_filename=body.filename,
        stored_filename=stored_filename,
        storage_key=key,
        relocation_status=RelocationStatus.PENDING.value,
        file_size=len(content),
        mime_type=DEFAULT_MIME_TYPE,
        step_name=body.step_name.value,
    )
    db.add(document)
    await db.flush()
    await db.refresh(document)

    await _notify(
        notifier,
        DOCUMENT_UPLOADED,
        {
            "draftId": draft.id,
            "userId": user_id,
            "documentId": document.id,
            "documentType": document.document_type,
            "filename": document.original_filename,
        },
    )
    return document


async def _notify(notifier: OnboardingNotifier, event: str, payload: dict) -> None:
    """Notifier failures never fail the request."""
    try:
        await notifier.notify(event, payload)
    except Exception as e:
        logger.warning(f"Notifier raised for {event}: {e}", extra={"event": event})
