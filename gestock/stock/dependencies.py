from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.database import get_db_session
from gestock.products.dependencies import ProductRepositoryDep
from gestock.stock.ledger import StockLedger
from gestock.stock.service import EntreeService

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_stock_ledger(session: SessionDep) -> StockLedger:
    return StockLedger(db=session)


StockLedgerDep = Annotated[StockLedger, Depends(get_stock_ledger)]


def get_entree_service(
    session: SessionDep,
    ledger: StockLedgerDep,
    product_repo: ProductRepositoryDep,
) -> EntreeService:
    """
    Fournit une instance du service des entrées de stock.

    Args:
        session: Session de base de données asynchrone
        ledger: Registre de stock partageant la même session
        product_repo: Repository des produits

    Returns:
        EntreeService: Instance configurée pour la requête courante
    """
    return EntreeService(db=session, ledger=ledger, product_repo=product_repo)


EntreeServiceDep = Annotated[EntreeService, Depends(get_entree_service)]
