"""Application services: use case orchestration."""

from timelock_escrow.services.agreement_service import AgreementService

__all__ = ["AgreementService"]
