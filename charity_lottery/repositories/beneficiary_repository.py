"""Repository layer for Beneficiary persistence."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from charity_lottery.models.beneficiary import Beneficiary


class BeneficiaryRepository:
    """Lookups and cumulative funding counters."""

    def get_by_id(self, session: Session, beneficiary_id: str) -> Beneficiary | None:
        return session.get(Beneficiary, beneficiary_id)

    def get_active(self, session: Session, beneficiary_id: str) -> Beneficiary | None:
        stmt = select(Beneficiary).where(Beneficiary.id == beneficiary_id, Beneficiary.is_active.is_(True))
        return session.scalars(stmt).first()

    def list_active(self, session: Session) -> Sequence[Beneficiary]:
        stmt = select(Beneficiary).where(Beneficiary.is_active.is_(True)).order_by(Beneficiary.created_at.desc(), Beneficiary.id.asc())
        return list(session.scalars(stmt).all())

    def create(self, session: Session, beneficiary_id: str, name: str, description: str | None = None, is_active: bool = True) -> Beneficiary:
        beneficiary = Beneficiary(
            id=beneficiary_id,
            name=name,
            description=description,
            is_active=is_active,
            total_funds_received=0,
            total_bets_supported=0,
        )
        session.add(beneficiary)
        session.flush()
        return beneficiary

    def record_contribution(self, session: Session, beneficiary_id: str, amount: int) -> Beneficiary:
        """Add ``amount`` to the received funds and count one more supported bet."""

        stmt = select(Beneficiary).where(Beneficiary.id == beneficiary_id).with_for_update()
        beneficiary = session.scalars(stmt).one()
        beneficiary.total_funds_received = int(beneficiary.total_funds_received or 0) + int(amount)
        beneficiary.total_bets_supported = int(beneficiary.total_bets_supported or 0) + 1
        return beneficiary
