"""
Registre de stock: seul point de modification de `Product.quantite_stock`.

Les deux opérations sont des UPDATE conditionnels exécutés dans la
transaction de l'appelant; aucune ne fait de commit.
"""
import logging
import uuid

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.products.exceptions import ProductNotFoundException
from gestock.products.models import Product
from gestock.stock.exceptions import InvalidStockMovementException, StockInsuffisantException

logger = logging.getLogger(__name__)


class StockLedger:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def credit(self, product_id: uuid.UUID, id_entreprise: uuid.UUID, quantite: int) -> None:
        """Ajoute `quantite` au stock du produit. Lève ProductNotFoundException si absent."""
        if quantite <= 0:
            raise InvalidStockMovementException(quantite)

        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.id_entreprise == id_entreprise)
            .values(quantite_stock=Product.quantite_stock + quantite)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise ProductNotFoundException(product_id)
        logger.info(f"[StockLedger] Crédit de {quantite} sur produit {product_id}")

    async def debit(self, product_id: uuid.UUID, id_entreprise: uuid.UUID, quantite: int) -> None:
        """
        Retire `quantite` du stock du produit.

        La condition `quantite_stock >= quantite` est évaluée par la base au moment
        de l'écriture: deux débits concurrents ne peuvent pas rendre le stock négatif.
        Lève StockInsuffisantException si aucune ligne n'est modifiée.
        """
        if quantite <= 0:
            raise InvalidStockMovementException(quantite)

        stmt = (
            update(Product)
            .where(
                Product.id == product_id,
                Product.id_entreprise == id_entreprise,
                Product.quantite_stock >= quantite,
            )
            .values(quantite_stock=Product.quantite_stock - quantite)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            logger.warning(f"[StockLedger] Débit refusé: {quantite} sur produit {product_id}")
            raise StockInsuffisantException(product_id=product_id, requested=quantite)
        logger.info(f"[StockLedger] Débit de {quantite} sur produit {product_id}")
