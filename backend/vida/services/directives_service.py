"""Directives Service — advance directive drafts, uploads, validation, sealing, revocation.

Invariants:
    - Drafts are editable and deletable; nothing else is
    - validate moves DRAFT or PENDING_VALIDATION to ACTIVE
    - revoke accepts any status except REVOKED
    - A NOM-151 seal requires a document hash; only the hash reaches the provider
    - emergency_summary reads the most recently validated ACTIVE directive

Design Decisions:
    - Wrong-state operations raise InvalidTransitionError (409) and unknown ids
      raise ResourceNotFoundError (404), so clients can tell the two apart
"""

import base64
import binascii
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vida.core.clock import as_utc, utcnow
from vida.core.domain_types import DirectiveStatus, DirectiveType, ValidationMethod
from vida.core.errors import (
    InvalidTransitionError, ResourceNotFoundError, ValidationFailedError,
)
from vida.infrastructure.encryption import sha256_hex
from vida.infrastructure.nom151_client import Nom151Client
from vida.models.advance_directive import AdvanceDirective
from vida.schemas.directive import (
    DirectiveDraftCreate, DirectiveUpdate, DirectiveUpload,
)
from vida.services.premium_service import PremiumService

logger = logging.getLogger(__name__)

_VALIDATABLE = frozenset({DirectiveStatus.DRAFT, DirectiveStatus.PENDING_VALIDATION})


class DirectivesService:
    def __init__(
        self,
        db: AsyncSession,
        premium: PremiumService | None = None,
        nom151: Nom151Client | None = None,
    ):
        self.db = db
        self.premium = premium
        self.nom151 = nom151

    async def _require(self, user_id: UUID, feature: str) -> None:
        if self.premium:
            await self.premium.require_feature(user_id, feature)

    async def list_all(self, user_id: UUID) -> list[AdvanceDirective]:
        result = await self.db.execute(
            select(AdvanceDirective)
            .where(AdvanceDirective.user_id == user_id)
            .order_by(AdvanceDirective.created_at.desc()),
        )
        return list(result.scalars().all())

    async def get(self, user_id: UUID, directive_id: UUID) -> AdvanceDirective:
        result = await self.db.execute(
            select(AdvanceDirective).where(
                AdvanceDirective.id == directive_id,
                AdvanceDirective.user_id == user_id,
            ),
        )
        directive = result.scalar_one_or_none()
        if not directive:
            raise ResourceNotFoundError(
                "AdvanceDirective", str(directive_id), code="DIRECTIVE_NOT_FOUND",
            )
        return directive

    async def active(self, user_id: UUID) -> AdvanceDirective | None:
        result = await self.db.execute(
            select(AdvanceDirective)
            .where(
                AdvanceDirective.user_id == user_id,
                AdvanceDirective.status == DirectiveStatus.ACTIVE.value,
            )
            .order_by(AdvanceDirective.validated_at.desc())
            .limit(1),
        )
        return result.scalar_one_or_none()

    async def create_draft(
        self, user_id: UUID, data: DirectiveDraftCreate,
    ) -> AdvanceDirective:
        await self._require(user_id, "advance_directives")
        directive = AdvanceDirective(
            user_id=user_id,
            type=DirectiveType.DIGITAL_DRAFT.value,
            status=DirectiveStatus.DRAFT.value,
            **data.model_dump(),
        )
        self.db.add(directive)
        await self.db.commit()
        await self.db.refresh(directive)
        logger.info("Directive draft created", extra={"user_id": str(user_id)})
        return directive

    async def upload_document(
        self, user_id: UUID, data: DirectiveUpload,
    ) -> AdvanceDirective:
        await self._require(user_id, "advance_directives")
        document_hash = None
        if data.document_base64:
            try:
                content = base64.b64decode(data.document_base64, validate=True)
            except (binascii.Error, ValueError):
                raise ValidationFailedError(
                    "document_base64 is not valid base64", code="INVALID_DOCUMENT",
                )
            document_hash = sha256_hex(content)

        directive = AdvanceDirective(
            user_id=user_id,
            type=DirectiveType.NOTARIZED_DOCUMENT.value,
            status=DirectiveStatus.PENDING_VALIDATION.value,
            document_url=data.document_url,
            original_file_name=data.original_file_name,
            document_hash=document_hash,
            origin_state=data.origin_state,
        )
        self.db.add(directive)
        await self.db.commit()
        await self.db.refresh(directive)
        return directive

    async def update_draft(
        self, user_id: UUID, directive_id: UUID, data: DirectiveUpdate,
    ) -> AdvanceDirective:
        directive = await self.get(user_id, directive_id)
        if directive.status != DirectiveStatus.DRAFT.value:
            raise InvalidTransitionError(
                "AdvanceDirective", directive.status, "DRAFT (edit)",
            )
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(directive, field, value)
        await self.db.commit()
        await self.db.refresh(directive)
        return directive

    async def validate(
        self, user_id: UUID, directive_id: UUID, method: ValidationMethod,
    ) -> AdvanceDirective:
        directive = await self.get(user_id, directive_id)
        if DirectiveStatus(directive.status) not in _VALIDATABLE:
            raise InvalidTransitionError(
                "AdvanceDirective", directive.status, DirectiveStatus.ACTIVE.value,
            )
        directive.status = DirectiveStatus.ACTIVE.value
        directive.validated_at = utcnow()
        directive.validation_method = method.value
        directive.validated_by = "self"
        await self.db.commit()
        await self.db.refresh(directive)
        logger.info("Directive validated", extra={"user_id": str(user_id)})
        return directive

    async def seal_nom151(
        self, user_id: UUID, directive_id: UUID,
    ) -> AdvanceDirective:
        await self._require(user_id, "nom151_seal")
        directive = await self.get(user_id, directive_id)
        if not directive.document_hash:
            raise ValidationFailedError(
                "Directive has no document hash to seal",
                code="DOCUMENT_HASH_REQUIRED",
            )
        if self.nom151 is None:
            raise RuntimeError("NOM-151 client not configured")
        seal = await self.nom151.seal(directive.document_hash)
        directive.nom151_sealed = True
        directive.nom151_timestamp = seal.timestamp
        directive.nom151_certificate = seal.certificate
        directive.nom151_provider = seal.provider
        await self.db.commit()
        await self.db.refresh(directive)
        return directive

    async def revoke(self, user_id: UUID, directive_id: UUID) -> AdvanceDirective:
        directive = await self.get(user_id, directive_id)
        if directive.status == DirectiveStatus.REVOKED.value:
            raise InvalidTransitionError(
                "AdvanceDirective", directive.status, DirectiveStatus.REVOKED.value,
            )
        directive.status = DirectiveStatus.REVOKED.value
        directive.revoked_at = utcnow()
        await self.db.commit()
        await self.db.refresh(directive)
        logger.info("Directive revoked", extra={"user_id": str(user_id)})
        return directive

    async def delete(self, user_id: UUID, directive_id: UUID) -> None:
        directive = await self.get(user_id, directive_id)
        if directive.status != DirectiveStatus.DRAFT.value:
            raise InvalidTransitionError(
                "AdvanceDirective", directive.status, "DELETED",
            )
        await self.db.delete(directive)
        await self.db.commit()

    async def emergency_summary(self, user_id: UUID) -> dict:
        directive = await self.active(user_id)
        if not directive:
            return {
                "has_active_directive": False,
                "accepts_cpr": None,
                "accepts_intubation": None,
                "additional_notes": None,
                "document_url": None,
                "validated_at": None,
            }
        return {
            "has_active_directive": True,
            "accepts_cpr": directive.accepts_cpr,
            "accepts_intubation": directive.accepts_intubation,
            "additional_notes": directive.additional_notes,
            "document_url": directive.document_url,
            "validated_at": as_utc(directive.validated_at),
        }
