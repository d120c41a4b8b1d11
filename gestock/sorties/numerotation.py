"""
Génération des numéros d'ordre des sorties de stock: `SO-AAAAMMJJ-NNN`.

Deux stratégies (Settings.ORDER_NUMBER_STRATEGY):

- "compteur": une ligne `compteurs_ordre` par jour, incrémentée par
  `UPDATE ... RETURNING`. Unique même avec des validations concurrentes.
- "scan": relit le plus grand numéro du jour parmi les sorties existantes et
  l'incrémente. Deux validations simultanées peuvent obtenir le même numéro.

Le numéro repart à 001 chaque jour. NNN s'élargit au-delà de 999.
"""
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy import func, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from gestock.config import settings
from gestock.sorties.models import CompteurOrdre, SortieStock

logger = logging.getLogger(__name__)

STRATEGIE_COMPTEUR = "compteur"
STRATEGIE_SCAN = "scan"


class NumeroOrdreGenerator:

    def __init__(
        self,
        db: AsyncSession,
        strategie: Optional[str] = None,
        clock: Callable[[], date] = date.today,
        prefix: Optional[str] = None,
    ):
        self.db = db
        self.strategie = strategie or settings.ORDER_NUMBER_STRATEGY
        if self.strategie not in (STRATEGIE_COMPTEUR, STRATEGIE_SCAN):
            self.strategie = STRATEGIE_COMPTEUR
        self.clock = clock
        self.prefix = prefix or settings.ORDER_NUMBER_PREFIX

    def _prefixe_du_jour(self, jour: date) -> str:
        return f"{self.prefix}-{jour:%Y%m%d}-"

    async def next(self) -> str:
        """Retourne le prochain numéro d'ordre du jour. Pas de commit."""
        jour = self.clock()
        if self.strategie == STRATEGIE_SCAN:
            numero = await self._suivant_par_scan(jour)
        else:
            numero = await self._suivant_par_compteur(jour)
        num_ordre = f"{self._prefixe_du_jour(jour)}{numero:03d}"
        logger.debug(f"[NumeroOrdreGenerator] Numéro attribué: {num_ordre} ({self.strategie})")
        return num_ordre

    async def _suivant_par_compteur(self, jour: date) -> int:
        increment = (
            update(CompteurOrdre)
            .where(CompteurOrdre.jour == jour)
            .values(dernier_numero=CompteurOrdre.dernier_numero + 1)
            .returning(CompteurOrdre.dernier_numero)
            .execution_options(synchronize_session=False)
        )
        numero = (await self.db.execute(increment)).scalar_one_or_none()
        if numero is not None:
            return numero

        # Premier numéro du jour: une insertion concurrente peut gagner la course
        try:
            async with self.db.begin_nested():
                await self.db.execute(insert(CompteurOrdre).values(jour=jour, dernier_numero=1))
            return 1
        except IntegrityError:
            logger.info(f"[NumeroOrdreGenerator] Compteur du {jour} créé en parallèle, nouvel incrément")
            return (await self.db.execute(increment)).scalar_one()

    async def _suivant_par_scan(self, jour: date) -> int:
        prefixe = self._prefixe_du_jour(jour)
        stmt = (
            select(SortieStock.num_ordre)
            .where(SortieStock.num_ordre.startswith(prefixe, autoescape=True))
            .order_by(func.length(SortieStock.num_ordre).desc(), SortieStock.num_ordre.desc())
            .limit(1)
        )
        dernier = (await self.db.execute(stmt)).scalar_one_or_none()
        if dernier is None:
            return 1
        try:
            return int(dernier[len(prefixe):]) + 1
        except ValueError:
            logger.warning(f"[NumeroOrdreGenerator] Numéro d'ordre illisible ignoré: {dernier}")
            return 1
