import logging
import uuid
from typing import List, Optional, Tuple

from fastcrud import FastCRUD
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlmodel import select

from gestock.auth.roles import Action
from gestock.core.exceptions import DomainException
from gestock.core.utils import utcnow
from gestock.demandes.models import StatutDemande
from gestock.sorties.exceptions import (
    DemandeNonValideeException,
    SortieDejaTraiteeException,
    SortieForbiddenException,
    SortieNotFoundException,
)
from gestock.sorties.models import SortieRead, SortieStock, StatutDirection
from gestock.stock.exceptions import StockInsuffisantException
from gestock.stock.ledger import StockLedger
from gestock.users.models import UserRead

logger = logging.getLogger(__name__)


class SortieService:
    """Confirmation et refus des sorties de stock par la direction."""

    def __init__(self, db: AsyncSession, ledger: StockLedger):
        self.db = db
        self.ledger = ledger
        self.crud = FastCRUD(SortieStock)

    async def _charger_sortie(self, sortie_id: uuid.UUID) -> Optional[SortieStock]:
        stmt = (
            select(SortieStock)
            .where(SortieStock.id == sortie_id)
            .options(selectinload(SortieStock.product), selectinload(SortieStock.demande))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _changer_statut(self, sortie_id: uuid.UUID, nouveau: StatutDirection) -> None:
        """Transition EN_ATTENTE -> `nouveau`, perdue si une autre requête est passée avant."""
        stmt = (
            update(SortieStock)
            .where(SortieStock.id == sortie_id, SortieStock.statut_direction == StatutDirection.EN_ATTENTE)
            .values(statut_direction=nouveau, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise SortieDejaTraiteeException(sortie_id)

    async def _sortie_en_attente(self, sortie_id: uuid.UUID, actor: UserRead) -> SortieStock:
        sortie = await self._charger_sortie(sortie_id)
        if sortie is None or sortie.product is None or sortie.product.id_entreprise != actor.id_entreprise:
            logger.warning(f"[SortieService] Sortie {sortie_id} introuvable pour l'entreprise {actor.id_entreprise}")
            raise SortieNotFoundException(sortie_id)
        if sortie.statut_direction != StatutDirection.EN_ATTENTE:
            raise SortieDejaTraiteeException(sortie_id)
        return sortie

    async def confirm(self, sortie_id: uuid.UUID, actor: UserRead) -> SortieRead:
        """
        Confirme une sortie EN_ATTENTE et débite le stock du produit.

        Le débit et le changement de statut sont validés ensemble ou pas du tout.

        Raises:
            SortieForbiddenException: rôle sans la capacité CONFIRMER_SORTIE
            SortieNotFoundException: sortie absente, hors entreprise ou déjà traitée
            DemandeNonValideeException: la demande d'origine n'est pas VALIDEE
            StockInsuffisantException: stock du produit inférieur à la quantité
        """
        logger.info(f"[SortieService] Confirmation sortie {sortie_id} par user {actor.id}")
        if not actor.role.can(Action.CONFIRMER_SORTIE):
            raise SortieForbiddenException()

        try:
            sortie = await self._sortie_en_attente(sortie_id, actor)
            if sortie.demande is None or sortie.demande.statut != StatutDemande.VALIDEE:
                raise DemandeNonValideeException(sortie.id_demande)
            if sortie.product.quantite_stock < sortie.quantite_sortie:
                raise StockInsuffisantException(
                    product_id=sortie.id_product,
                    requested=sortie.quantite_sortie,
                    available=sortie.product.quantite_stock,
                )

            await self.ledger.debit(sortie.id_product, actor.id_entreprise, sortie.quantite_sortie)
            await self._changer_statut(sortie.id, StatutDirection.CONFIRMEE)
            await self.db.commit()
        except DomainException as e:
            logger.warning(f"[SortieService] Confirmation sortie {sortie_id} refusée: {e.message}")
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"[SortieService] Erreur inattendue confirmation sortie {sortie_id}: {e}", exc_info=True)
            await self.db.rollback()
            raise

        await self.db.refresh(sortie)
        logger.info(f"[SortieService] Sortie {sortie.num_ordre} confirmée, stock débité de {sortie.quantite_sortie}")
        return SortieRead.model_validate(sortie)

    async def reject(self, sortie_id: uuid.UUID, actor: UserRead) -> SortieRead:
        """Refuse une sortie EN_ATTENTE. Le stock n'est pas modifié."""
        logger.info(f"[SortieService] Refus sortie {sortie_id} par user {actor.id}")
        if not actor.role.can(Action.REFUSER_SORTIE):
            raise SortieForbiddenException()

        try:
            sortie = await self._sortie_en_attente(sortie_id, actor)
            await self._changer_statut(sortie.id, StatutDirection.REFUSEE)
            await self.db.commit()
        except DomainException as e:
            logger.warning(f"[SortieService] Refus sortie {sortie_id} impossible: {e.message}")
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"[SortieService] Erreur inattendue refus sortie {sortie_id}: {e}", exc_info=True)
            await self.db.rollback()
            raise

        await self.db.refresh(sortie)
        return SortieRead.model_validate(sortie)

    async def get(self, sortie_id: uuid.UUID, actor: UserRead) -> SortieRead:
        sortie = await self.crud.get(
            self.db,
            schema_to_select=SortieRead,
            return_as_model=True,
            id=sortie_id,
            id_entreprise=actor.id_entreprise,
        )
        if sortie is None:
            raise SortieNotFoundException(sortie_id)
        return sortie

    async def list(
        self,
        actor: UserRead,
        limit: int,
        offset: int,
        statut_direction: Optional[StatutDirection] = None,
        **filters,
    ) -> Tuple[List[SortieRead], int]:
        """Sorties de l'entreprise, les plus récentes d'abord. `filters` restreint par demande ou produit."""
        if statut_direction is not None:
            filters["statut_direction"] = statut_direction
        result = await self.crud.get_multi(
            self.db,
            offset=offset,
            limit=limit,
            schema_to_select=SortieRead,
            return_as_model=True,
            sort_columns=["date_sortie", "num_ordre"],
            sort_orders=["desc", "desc"],
            id_entreprise=actor.id_entreprise,
            **filters,
        )
        return result["data"], result["total_count"]
