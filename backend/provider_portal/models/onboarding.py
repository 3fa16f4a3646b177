"""Onboarding drafts and the documents uploaded against them.

A user has at most one incomplete draft at a time. The partial unique
index below enforces that at the storage layer, so two concurrent
"create draft" requests cannot both succeed.

Completed drafts are kept as history; only the file relocation that
follows completion touches their documents afterwards.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from provider_portal.database import Base


class OnboardingStep(str, enum.Enum):
    IDENTIFY_PROVIDER = "identify-provider"
    PRACTICE_TYPE = "practice-type"
    SPECIALTY = "specialty"
    BUSINESS_PROFILE = "business-profile"
    LICENSES = "licenses"
    PAYERS = "payers"
    REQUIRED_DOCS = "required-docs"
    PORTAL_LOGINS = "portal-logins"


# Wizard order; the draft is forced to the last one on completion.
STEP_ORDER: list[OnboardingStep] = list(OnboardingStep)
FINAL_STEP = STEP_ORDER[-1]


class RelocationStatus(str, enum.Enum):
    PENDING = "pending"
    MOVED = "moved"
    FAILED = "failed"


class OnboardingDraft(Base):
    __tablename__ = "onboarding_drafts"
    __table_args__ = (
        Index(
            "uq_onboarding_drafts_user_open",
            "user_id",
            unique=True,
            postgresql_where=text("is_completed = false"),
            sqlite_where=text("is_completed = 0"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    # Accumulated per-step answers, replaced wholesale on every save
    step_data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    current_step: Mapped[str] = mapped_column(
        String(32), default=OnboardingStep.IDENTIFY_PROVIDER.value, nullable=False
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    provider_id: Mapped[str | None] = mapped_column(String(64), unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user = relationship("User", back_populates="drafts")
    documents = relationship(
        "UploadedDocument", back_populates="draft", order_by="UploadedDocument.id"
    )


class UploadedDocument(Base):
    __tablename__ = "uploaded_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    onboarding_draft_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("onboarding_drafts.id"), nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(100), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    # Name generated at upload time; never rewritten
    stored_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    # Where the bytes currently live (temp/... until relocated)
    storage_key: Mapped[str] = mapped_column(String(512), nullable=False)
    relocation_status: Mapped[str] = mapped_column(
        String(16), default=RelocationStatus.PENDING.value, nullable=False
    )
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(
        String(100), default="application/octet-stream", nullable=False
    )
    step_name: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    draft = relationship("OnboardingDraft", back_populates="documents")
