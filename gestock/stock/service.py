import logging
import uuid
from datetime import date
from typing import List, Tuple

from fastcrud import FastCRUD
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.auth.roles import Action
from gestock.core.exceptions import DomainException
from gestock.products.exceptions import ProductNotFoundException
from gestock.products.models import ProductRead
from gestock.products.repositories import ProductRepository
from gestock.stock.exceptions import EntreeForbiddenException, InvalidStockMovementException
from gestock.stock.ledger import StockLedger
from gestock.stock.models import EntreesStock, EntreeStockCreate, EntreeStockRead
from gestock.users.models import UserRead

logger = logging.getLogger(__name__)


class EntreeService:
    """Service applicatif pour les entrées de stock et les alertes de stock bas."""

    def __init__(self, db: AsyncSession, ledger: StockLedger, product_repo: ProductRepository):
        self.db = db
        self.ledger = ledger
        self.product_repo = product_repo
        self.crud = FastCRUD(EntreesStock)

    async def create(self, product_id: uuid.UUID, actor: UserRead, data: EntreeStockCreate) -> EntreeStockRead:
        """Enregistre une réception et crédite le stock dans la même transaction."""
        logger.info(f"[EntreeService] Entrée de {data.quantite_entree} sur produit {product_id} par user {actor.id}")
        if not actor.role.can(Action.ENREGISTRER_ENTREE):
            raise EntreeForbiddenException()
        if data.quantite_entree < 1:
            raise InvalidStockMovementException(data.quantite_entree)

        try:
            if not await self.product_repo.exists(product_id, actor.id_entreprise):
                raise ProductNotFoundException(product_id)

            entree = EntreesStock(
                id_entreprise=actor.id_entreprise,
                id_product=product_id,
                id_users=actor.id,
                quantite_entree=data.quantite_entree,
                fournisseur=data.fournisseur,
                num_ordre=data.num_ordre,
                date_reception=data.date_reception or date.today(),
            )
            self.db.add(entree)
            await self.ledger.credit(product_id, actor.id_entreprise, data.quantite_entree)
            await self.db.commit()
        except DomainException:
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"[EntreeService] Erreur inattendue création entrée produit {product_id}: {e}", exc_info=True)
            await self.db.rollback()
            raise

        await self.db.refresh(entree)
        return EntreeStockRead.model_validate(entree)

    async def list_for_product(
        self, product_id: uuid.UUID, actor: UserRead, limit: int, offset: int
    ) -> Tuple[List[EntreeStockRead], int]:
        if not await self.product_repo.exists(product_id, actor.id_entreprise):
            raise ProductNotFoundException(product_id)
        return await self.list_company(actor, limit, offset, id_product=product_id)

    async def list_company(
        self, actor: UserRead, limit: int, offset: int, **filters
    ) -> Tuple[List[EntreeStockRead], int]:
        logger.debug(f"[EntreeService] Listage entrées entreprise {actor.id_entreprise} {filters}")
        result = await self.crud.get_multi(
            self.db,
            offset=offset,
            limit=limit,
            schema_to_select=EntreeStockRead,
            return_as_model=True,
            sort_columns=["created_at"],
            sort_orders=["desc"],
            id_entreprise=actor.id_entreprise,
            **filters,
        )
        return result["data"], result["total_count"]

    async def list_alertes(self, actor: UserRead, limit: int, offset: int) -> Tuple[List[ProductRead], int]:
        """Produits dont le stock a atteint le seuil d'alerte. Informatif uniquement."""
        products, total = await self.product_repo.list_low_stock(actor.id_entreprise, limit, offset)
        return [ProductRead.model_validate(p) for p in products], total
