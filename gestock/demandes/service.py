"""
Moteur de workflow des demandes.

Une demande naît EN_ATTENTE puis passe une seule fois à VALIDEE ou REFUSEE.
La validation crée, dans la même transaction, une sortie EN_ATTENTE par ligne.
"""
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from gestock.auth.roles import Action
from gestock.core.exceptions import DomainException
from gestock.demandes.exceptions import (
    DemandeDejaTraiteeException,
    DemandeForbiddenException,
    DemandeNonRejetableException,
    DemandeNotFoundException,
    DemandeSansLigneException,
    ProduitEnDoubleException,
    ProduitsInconnusException,
    QuantiteDemandeeInvalideException,
)
from gestock.demandes.models import (
    Demande,
    DemandeCreate,
    DemandeRead,
    LigneDemande,
    StatutDemande,
    ValidationDemandeResponse,
)
from gestock.demandes.repositories import DemandeRepository
from gestock.products.repositories import ProductRepository
from gestock.sorties.models import SortieRead, SortieStock
from gestock.sorties.numerotation import NumeroOrdreGenerator
from gestock.sorties.service import SortieService
from gestock.users.models import UserRead

logger = logging.getLogger(__name__)


class DemandeService:
    """Service applicatif pour le cycle de vie des demandes."""

    def __init__(
        self,
        db: AsyncSession,
        demande_repo: DemandeRepository,
        product_repo: ProductRepository,
        numerotation: NumeroOrdreGenerator,
        sortie_service: SortieService,
    ):
        self.db = db
        self.demande_repo = demande_repo
        self.product_repo = product_repo
        self.numerotation = numerotation
        self.sortie_service = sortie_service

    # --- Lecture ---

    async def _demande_visible(self, demande_id: uuid.UUID, actor: UserRead) -> Demande:
        demande = await self.demande_repo.get(demande_id, actor.id_entreprise)
        if demande is None:
            raise DemandeNotFoundException(demande_id)
        if demande.id_users != actor.id and not actor.role.can(Action.CONSULTER_DEMANDES_ENTREPRISE):
            logger.warning(f"[DemandeService] User {actor.id} refusé sur la demande {demande_id} d'un autre utilisateur")
            raise DemandeForbiddenException()
        return demande

    async def get(self, demande_id: uuid.UUID, actor: UserRead) -> DemandeRead:
        demande = await self._demande_visible(demande_id, actor)
        return DemandeRead.model_validate(demande)

    async def list_mine(self, actor: UserRead, limit: int, offset: int) -> Tuple[List[DemandeRead], int]:
        demandes, total = await self.demande_repo.list(actor.id_entreprise, limit, offset, id_users=actor.id)
        return [DemandeRead.model_validate(d) for d in demandes], total

    async def list_company(
        self, actor: UserRead, limit: int, offset: int, statut: Optional[StatutDemande] = None
    ) -> Tuple[List[DemandeRead], int]:
        if not actor.role.can(Action.CONSULTER_DEMANDES_ENTREPRISE):
            raise DemandeForbiddenException()
        demandes, total = await self.demande_repo.list(actor.id_entreprise, limit, offset, statut=statut)
        return [DemandeRead.model_validate(d) for d in demandes], total

    async def list_sorties(
        self, demande_id: uuid.UUID, actor: UserRead, limit: int, offset: int
    ) -> Tuple[List[SortieRead], int]:
        await self._demande_visible(demande_id, actor)
        return await self.sortie_service.list(actor, limit, offset, id_demande=demande_id)

    # --- Création ---

    async def _verifier_lignes(self, data: DemandeCreate, actor: UserRead) -> None:
        if not data.lignes:
            raise DemandeSansLigneException()

        vus = set()
        for ligne in data.lignes:
            if ligne.quantite_demandee < 1:
                raise QuantiteDemandeeInvalideException(ligne.quantite_demandee)
            if ligne.id_product in vus:
                raise ProduitEnDoubleException(ligne.id_product)
            vus.add(ligne.id_product)

        connus = await self.product_repo.ids_in_entreprise(list(vus), actor.id_entreprise)
        inconnus = [pid for pid in vus if pid not in connus]
        if inconnus:
            raise ProduitsInconnusException(inconnus)

    async def create(self, actor: UserRead, data: DemandeCreate) -> DemandeRead:
        logger.info(f"[DemandeService] Création demande par user {actor.id} ({len(data.lignes)} ligne(s))")
        if not actor.role.can(Action.CREER_DEMANDE):
            raise DemandeForbiddenException()

        await self._verifier_lignes(data, actor)

        demande = Demande(
            id_entreprise=actor.id_entreprise,
            id_users=actor.id,
            motif=data.motif,
            agence=data.agence,
            statut=StatutDemande.EN_ATTENTE,
            lignes=[
                LigneDemande(
                    id_product=ligne.id_product,
                    quantite_demandee=ligne.quantite_demandee,
                    position=position,
                )
                for position, ligne in enumerate(data.lignes)
            ],
        )
        try:
            await self.demande_repo.add(demande)
            await self.db.commit()
        except Exception as e:
            logger.error(f"[DemandeService] Erreur création demande user {actor.id}: {e}", exc_info=True)
            await self.db.rollback()
            raise

        logger.info(f"[DemandeService] Demande {demande.id} créée")
        return DemandeRead.model_validate(await self.demande_repo.get(demande.id, actor.id_entreprise))

    # --- Transitions ---

    async def validate(
        self, demande_id: uuid.UUID, actor: UserRead, notes_gestionnaire: Optional[str] = None
    ) -> ValidationDemandeResponse:
        """
        Valide une demande EN_ATTENTE et crée une sortie EN_ATTENTE par ligne.

        Le changement de statut, l'attribution des numéros d'ordre et la
        création des sorties sont validés ensemble ou annulés ensemble.
        """
        logger.info(f"[DemandeService] Validation demande {demande_id} par user {actor.id}")
        if not actor.role.can(Action.VALIDER_DEMANDE):
            raise DemandeForbiddenException()

        try:
            demande = await self.demande_repo.get(demande_id, actor.id_entreprise)
            if demande is None:
                raise DemandeNotFoundException(demande_id)
            if demande.statut != StatutDemande.EN_ATTENTE:
                raise DemandeDejaTraiteeException(demande_id)
            if not await self.demande_repo.transition(
                demande_id, actor.id_entreprise, StatutDemande.VALIDEE, notes_gestionnaire
            ):
                raise DemandeDejaTraiteeException(demande_id)

            sorties = []
            for ligne in demande.lignes:
                sortie = SortieStock(
                    id_entreprise=demande.id_entreprise,
                    id_product=ligne.id_product,
                    id_demande=demande.id,
                    id_users=demande.id_users,
                    num_ordre=await self.numerotation.next(),
                    quantite_sortie=ligne.quantite_demandee,
                )
                self.db.add(sortie)
                await self.db.flush()
                sorties.append(sortie)

            await self.db.commit()
        except DomainException as e:
            logger.warning(f"[DemandeService] Validation demande {demande_id} impossible: {e.message}")
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"[DemandeService] Erreur inattendue validation demande {demande_id}: {e}", exc_info=True)
            await self.db.rollback()
            raise

        logger.info(f"[DemandeService] Demande {demande_id} validée, {len(sorties)} sortie(s) créée(s)")
        return ValidationDemandeResponse(
            message="Demande validée, sorties créées",
            sorties=[SortieRead.model_validate(s) for s in sorties],
        )

    async def reject(
        self, demande_id: uuid.UUID, actor: UserRead, notes_gestionnaire: Optional[str] = None
    ) -> None:
        """Refuse une demande EN_ATTENTE. Aucune sortie n'est créée."""
        logger.info(f"[DemandeService] Refus demande {demande_id} par user {actor.id}")
        if not actor.role.can(Action.REFUSER_DEMANDE):
            raise DemandeForbiddenException()

        try:
            demande = await self.demande_repo.get(demande_id, actor.id_entreprise)
            if demande is None:
                raise DemandeNotFoundException(demande_id)
            if demande.statut != StatutDemande.EN_ATTENTE:
                raise DemandeNonRejetableException(demande_id)
            if not await self.demande_repo.transition(
                demande_id, actor.id_entreprise, StatutDemande.REFUSEE, notes_gestionnaire
            ):
                raise DemandeNonRejetableException(demande_id)
            await self.db.commit()
        except DomainException as e:
            logger.warning(f"[DemandeService] Refus demande {demande_id} impossible: {e.message}")
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"[DemandeService] Erreur inattendue refus demande {demande_id}: {e}", exc_info=True)
            await self.db.rollback()
            raise
