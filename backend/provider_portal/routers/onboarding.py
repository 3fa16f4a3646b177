"""Onboarding wizard — 8-step provider credentialing with save/resume.

Endpoints:
  GET  /draft               → caller's open draft, or {"draft": null}
  POST /draft               → save the accumulated step data (creates on first save)
  POST /complete            → finalize the draft and relocate its documents
  POST /upload              → upload a base64 document against the open draft
  GET  /documents           → documents uploaded against the open draft
  GET  /required-documents  → documents the current answers call for
  GET  /history             → caller's completed drafts

Steps, in order: identify-provider, practice-type, specialty,
business-profile, licenses, payers, required-docs, portal-logins.
There are no prerequisites between steps; the wizard drives the order.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from provider_portal.auth.deps import AuthIdentity, get_current_identity
from provider_portal.database import get_db
from provider_portal.models.onboarding import OnboardingDraft, UploadedDocument
from provider_portal.schemas.onboarding import (
    CompleteOnboardingRequest,
    DocumentListResponse,
    DraftHistoryResponse,
    GetDraftResponse,
    OnboardingDraftOut,
    OnboardingStepData,
    RequiredDocumentsResponse,
    SaveDraftRequest,
    UploadDocumentRequest,
    UploadedDocumentOut,
)
from provider_portal.services import onboarding as onboarding_service
from provider_portal.services.notifier import OnboardingNotifier, get_notifier
from provider_portal.services.required_docs import derive_required_documents
from provider_portal.services.storage import ObjectStorage, get_storage

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _make_draft_out(draft: OnboardingDraft) -> OnboardingDraftOut:
    return OnboardingDraftOut(
        id=draft.id,
        user_id=draft.user_id,
        step_data=OnboardingStepData.model_validate(draft.step_data or {}),
        current_step=draft.current_step,
        is_completed=draft.is_completed,
        provider_id=draft.provider_id,
        created_at=draft.created_at,
        updated_at=draft.updated_at,
    )


def _make_document_out(doc: UploadedDocument) -> UploadedDocumentOut:
    return UploadedDocumentOut(
        id=doc.id,
        onboarding_draft_id=doc.onboarding_draft_id,
        document_type=doc.document_type,
        original_filename=doc.original_filename,
        stored_filename=doc.stored_filename,
        storage_key=doc.storage_key,
        relocation_status=doc.relocation_status,
        file_size=doc.file_size,
        mime_type=doc.mime_type,
        step_name=doc.step_name,
        created_at=doc.created_at,
    )


# ── Drafts ───────────────────────────────────────────────────

@router.get("/draft", response_model=GetDraftResponse)
async def get_draft(
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    draft = await onboarding_service.get_active_draft(db, identity.user_id)
    return GetDraftResponse(draft=_make_draft_out(draft) if draft else None)


@router.post("/draft", response_model=OnboardingDraftOut)
async def save_draft(
    body: SaveDraftRequest,
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Send the full accumulated step data each time; it replaces what is stored."""
    draft = await onboarding_service.save_draft(
        db, identity.user_id, body.step_data, body.current_step
    )
    return _make_draft_out(draft)


@router.post("/complete", response_model=OnboardingDraftOut)
async def complete_onboarding(
    body: CompleteOnboardingRequest,
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    notifier: OnboardingNotifier = Depends(get_notifier),
):
    draft = await onboarding_service.complete_draft(
        db, identity.user_id, body.final_step_data, storage, notifier
    )
    return _make_draft_out(draft)


@router.get("/history", response_model=DraftHistoryResponse)
async def draft_history(
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    drafts = await onboarding_service.list_completed_drafts(db, identity.user_id)
    return DraftHistoryResponse(drafts=[_make_draft_out(d) for d in drafts])


# ── Documents ────────────────────────────────────────────────

@router.post("/upload", response_model=UploadedDocumentOut, status_code=status.HTTP_201_CREATED)
async def upload_document(
    body: UploadDocumentRequest,
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    notifier: OnboardingNotifier = Depends(get_notifier),
):
    doc = await onboarding_service.upload_document(
        db, identity.user_id, body, storage, notifier
    )
    return _make_document_out(doc)


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    draft = await onboarding_service.get_active_draft(db, identity.user_id)
    if not draft:
        return DocumentListResponse(documents=[])
    docs = await onboarding_service.list_documents(db, draft.id)
    return DocumentListResponse(documents=[_make_document_out(d) for d in docs])


@router.get("/required-documents", response_model=RequiredDocumentsResponse)
async def required_documents(
    identity: AuthIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Base set only when the caller has no open draft."""
    draft = await onboarding_service.get_active_draft(db, identity.user_id)
    step_data = OnboardingStepData.model_validate(draft.step_data if draft else {})
    return RequiredDocumentsResponse(documents=derive_required_documents(step_data))
