# gestock/demandes/repositories.py
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from gestock.core.utils import utcnow
from gestock.demandes.models import Demande, LigneDemande, StatutDemande

logger = logging.getLogger(__name__)


class DemandeRepository:
    """Accès aux demandes; les lignes et leurs produits sont toujours chargés avec la demande."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _avec_lignes(stmt):
        return stmt.options(
            selectinload(Demande.lignes).selectinload(LigneDemande.product)
        ).execution_options(populate_existing=True)

    async def get(self, demande_id: uuid.UUID, id_entreprise: uuid.UUID) -> Optional[Demande]:
        logger.debug(f"[DemandeRepository] Lecture demande {demande_id} (entreprise {id_entreprise})")
        stmt = self._avec_lignes(
            select(Demande).where(Demande.id == demande_id, Demande.id_entreprise == id_entreprise)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def add(self, demande: Demande) -> Demande:
        self.db.add(demande)
        await self.db.flush()
        return demande

    async def transition(
        self,
        demande_id: uuid.UUID,
        id_entreprise: uuid.UUID,
        nouveau: StatutDemande,
        notes_gestionnaire: Optional[str] = None,
    ) -> bool:
        """Passe la demande de EN_ATTENTE à `nouveau`. Retourne False si elle n'était plus en attente."""
        values = {"statut": nouveau, "updated_at": utcnow()}
        if notes_gestionnaire is not None:
            values["notes_gestionnaire"] = notes_gestionnaire
        stmt = (
            update(Demande)
            .where(
                Demande.id == demande_id,
                Demande.id_entreprise == id_entreprise,
                Demande.statut == StatutDemande.EN_ATTENTE,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def list(
        self,
        id_entreprise: uuid.UUID,
        limit: int,
        offset: int,
        id_users: Optional[uuid.UUID] = None,
        statut: Optional[StatutDemande] = None,
    ) -> Tuple[List[Demande], int]:
        conditions = [Demande.id_entreprise == id_entreprise]
        if id_users is not None:
            conditions.append(Demande.id_users == id_users)
        if statut is not None:
            conditions.append(Demande.statut == statut)

        total = await self.db.scalar(select(func.count()).select_from(Demande).where(*conditions))
        stmt = self._avec_lignes(
            select(Demande)
            .where(*conditions)
            .order_by(Demande.date_demande.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0
