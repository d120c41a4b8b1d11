from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.database import get_db_session
from gestock.sorties.numerotation import NumeroOrdreGenerator
from gestock.sorties.service import SortieService
from gestock.stock.dependencies import StockLedgerDep

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_numerotation(session: SessionDep) -> NumeroOrdreGenerator:
    """Générateur de numéros d'ordre, stratégie lue dans la configuration."""
    return NumeroOrdreGenerator(db=session)


NumerotationDep = Annotated[NumeroOrdreGenerator, Depends(get_numerotation)]


def get_sortie_service(session: SessionDep, ledger: StockLedgerDep) -> SortieService:
    return SortieService(db=session, ledger=ledger)


SortieServiceDep = Annotated[SortieService, Depends(get_sortie_service)]
