"""Required-document rules for the onboarding wizard.

The list is recomputed from the current step data on every call, so it
tracks the answers as they change: unchecking Medicare drops the bank
document from the next list (files already uploaded for it stay put).

Order is fixed:
  1. Base set (resume, W-9, malpractice insurance, board certification,
     accreditation)
  2. One medical license per license entry, tagged by state + position
  3. DEA certificate        : behavioral specialty
  4. Facility license       : facility practice type
  5. Voided check / letter  : Medicare or Medicaid enrolment
"""

from provider_portal.schemas.onboarding import OnboardingStepData, RequiredDocument

BASE_DOCUMENTS: tuple[tuple[str, str, str, bool], ...] = (
    ("resume", "Resume", "Current professional resume", True),
    ("w9", "W-9 Form", "Completed and signed W-9 form", True),
    (
        "malpractice-insurance",
        "Malpractice Insurance",
        "Current malpractice insurance certificate",
        True,
    ),
    (
        "board-certification",
        "Board Certification",
        "Copy of your board certification, if applicable",
        False,
    ),
    (
        "accreditation",
        "Accreditation (e.g., DME, CLIA)",
        "Accreditation documents, if applicable",
        False,
    ),
)


def _doc(type_: str, name: str, description: str, required: bool) -> RequiredDocument:
    return RequiredDocument(
        type=type_, name=name, description=description, required=required
    )


def derive_required_documents(step_data: OnboardingStepData) -> list[RequiredDocument]:
    docs = [_doc(*entry) for entry in BASE_DOCUMENTS]

    # Index keeps two licenses from the same state distinct
    if step_data.licenses:
        for index, license in enumerate(step_data.licenses.licenses):
            docs.append(
                _doc(
                    f"license-{license.state}-{index}",
                    f"{license.state} Medical License",
                    f"Copy of medical license for {license.state}",
                    True,
                )
            )

    if step_data.specialty and step_data.specialty.type == "behavioral":
        docs.append(
            _doc(
                "dea-certificate",
                "DEA Certificate",
                "Drug Enforcement Administration certificate",
                False,
            )
        )

    if step_data.practice_type and step_data.practice_type.type == "facility":
        docs.append(
            _doc(
                "facility-license",
                "Facility License",
                "Healthcare facility operating license",
                True,
            )
        )

    if step_data.payers and (step_data.payers.medicare or step_data.payers.medicaid):
        docs.append(
            _doc(
                "bank-document",
                "Voided Check or Bank Letter",
                "Required for Medicare/Medicaid direct deposit",
                True,
            )
        )

    return docs
