import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.database import get_db_session
from gestock.demandes.repositories import DemandeRepository
from gestock.demandes.service import DemandeService
from gestock.products.dependencies import ProductRepositoryDep
from gestock.sorties.dependencies import NumerotationDep, SortieServiceDep

logger = logging.getLogger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_demande_repository(session: SessionDep) -> DemandeRepository:
    return DemandeRepository(db=session)


DemandeRepositoryDep = Annotated[DemandeRepository, Depends(get_demande_repository)]


def get_demande_service(
    session: SessionDep,
    demande_repo: DemandeRepositoryDep,
    product_repo: ProductRepositoryDep,
    numerotation: NumerotationDep,
    sortie_service: SortieServiceDep,
) -> DemandeService:
    """Fournit une instance du DemandeService avec ses collaborateurs."""
    logger.debug("Création DemandeService pour la requête")
    return DemandeService(
        db=session,
        demande_repo=demande_repo,
        product_repo=product_repo,
        numerotation=numerotation,
        sortie_service=sortie_service,
    )


DemandeServiceDep = Annotated[DemandeService, Depends(get_demande_service)]
