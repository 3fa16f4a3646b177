"""Pydantic schemas for the 8-step provider onboarding wizard.

Every step block is optional on OnboardingStepData: the wizard saves the
whole accumulated object after each step, so early saves carry only the
first few blocks. A block is always replaced as a unit, never merged.
"""

import base64
import binascii
from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from provider_portal.models.onboarding import OnboardingStep
from provider_portal.schemas.common import CamelModel


# ── Step 1: Identify provider ───────────────────────────────

class IdentifyProviderData(CamelModel):
    type: Literal["new", "existing"]
    existing_provider_id: str | None = None


# ── Step 2: Practice type ───────────────────────────────────

class PracticeTypeData(CamelModel):
    type: Literal["facility", "group"]


# ── Step 3: Specialty ───────────────────────────────────────

class SpecialtyData(CamelModel):
    type: Literal["primary-care", "behavioral"]


# ── Step 4: Business profile ────────────────────────────────

class BusinessProfileData(CamelModel):
    business_name: str | None = None
    provider_name: str | None = None
    ssn: str | None = None
    date_of_birth: str | None = None
    primary_address: str | None = None
    additional_locations: list[str] = Field(default_factory=list)
    ein_number: str | None = None
    npi_number: str | None = None
    group_npi_number: str | None = None
    county_of_business: str | None = None
    business_phone_number: str | None = None
    business_email: str | None = None
    business_fax_number: str | None = None
    caqh: str | None = None
    hours_of_operation: str | None = None
    business_website: str | None = None


# ── Step 5: Licenses ────────────────────────────────────────

class LicenseEntry(CamelModel):
    state: str
    license_number: str = ""
    expiration_date: str = ""


class LicensesData(CamelModel):
    licenses: list[LicenseEntry] = Field(default_factory=list)


# ── Step 6: Payers ──────────────────────────────────────────

class PayersData(CamelModel):
    medicare: bool = False
    medicaid: bool = False
    commercial_payers: list[str] = Field(default_factory=list)

    @field_validator("commercial_payers")
    @classmethod
    def _dedupe(cls, v: list[str]) -> list[str]:
        # Set semantics, first occurrence wins the position
        return list(dict.fromkeys(v))


# ── Step 7: Required documents ──────────────────────────────

class UploadedDocEntry(CamelModel):
    type: str
    filename: str
    uploaded: bool = False


class RequiredDocsData(CamelModel):
    uploaded_docs: list[UploadedDocEntry] = Field(default_factory=list)


# ── Step 8: Portal logins ───────────────────────────────────

class PortalLoginEntry(CamelModel):
    platform: str
    username: str = ""
    password: str = ""


class PortalLoginsData(CamelModel):
    # The wizard caps this at 5 entries; the API does not.
    logins: list[PortalLoginEntry] = Field(default_factory=list)


# ── Accumulated step data ───────────────────────────────────

class OnboardingStepData(CamelModel):
    identify_provider: IdentifyProviderData | None = None
    practice_type: PracticeTypeData | None = None
    specialty: SpecialtyData | None = None
    business_profile: BusinessProfileData | None = None
    licenses: LicensesData | None = None
    required_docs: RequiredDocsData | None = None
    payers: PayersData | None = None
    portal_logins: PortalLoginsData | None = None

    def to_storage(self) -> dict:
        """JSON stored in onboarding_drafts.step_data (camelCase, no empty blocks)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Draft requests / responses ──────────────────────────────

class SaveDraftRequest(CamelModel):
    step_data: OnboardingStepData
    current_step: OnboardingStep


class CompleteOnboardingRequest(CamelModel):
    final_step_data: OnboardingStepData


class OnboardingDraftOut(CamelModel):
    id: int
    user_id: int
    step_data: OnboardingStepData
    current_step: OnboardingStep
    is_completed: bool
    provider_id: str | None = None
    created_at: datetime
    updated_at: datetime


class GetDraftResponse(CamelModel):
    draft: OnboardingDraftOut | None = None


class DraftHistoryResponse(CamelModel):
    drafts: list[OnboardingDraftOut]


# ── Documents ───────────────────────────────────────────────

class UploadDocumentRequest(CamelModel):
    document_type: str = Field(min_length=1)
    step_name: OnboardingStep
    filename: str = Field(min_length=1)
    file_data: str  # base64

    @field_validator("file_data")
    @classmethod
    def _valid_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("fileData must be base64 encoded")
        return v

    def decoded_file(self) -> bytes:
        return base64.b64decode(self.file_data)


class UploadedDocumentOut(CamelModel):
    id: int
    onboarding_draft_id: int
    document_type: str
    original_filename: str
    stored_filename: str
    storage_key: str
    relocation_status: str
    file_size: int
    mime_type: str
    step_name: str
    created_at: datetime


class DocumentListResponse(CamelModel):
    documents: list[UploadedDocumentOut]


class RequiredDocument(CamelModel):
    type: str
    name: str
    description: str
    required: bool


class RequiredDocumentsResponse(CamelModel):
    documents: list[RequiredDocument]
