"""Aggregate model imports for Alembic auto-detection."""

from provider_portal.models.user import User, UserRole  # noqa: F401
from provider_portal.models.onboarding import (  # noqa: F401
    OnboardingDraft,
    OnboardingStep,
    UploadedDocument,
)
