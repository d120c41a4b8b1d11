import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from gestock.auth.roles import Action
from gestock.products.exceptions import (
    ProductManagementForbiddenException,
    ProductNameAlreadyExistsException,
    ProductNotFoundException,
)
from gestock.products.models import Product, ProductCreate, ProductMouvements, ProductRead
from gestock.products.repositories import ProductRepository
from gestock.sorties.service import SortieService
from gestock.stock.service import EntreeService
from gestock.users.models import UserRead

logger = logging.getLogger(__name__)

# Nombre maximal de mouvements renvoyés par type dans la vue historique
MOUVEMENTS_LIMIT = 100


class ProductService:
    """Service gérant les produits d'une entreprise."""

    def __init__(self, product_repo: ProductRepository):
        self.product_repo = product_repo
        self.db = product_repo.db

    async def create(self, actor: UserRead, data: ProductCreate) -> ProductRead:
        logger.info(f"[ProductService] Création produit '{data.nom}' par user {actor.id}")
        if not actor.role.can(Action.GERER_PRODUITS):
            raise ProductManagementForbiddenException()

        if await self.product_repo.exists_nom(data.nom, actor.id_entreprise):
            raise ProductNameAlreadyExistsException(data.nom)

        product = Product(**data.model_dump(), id_entreprise=actor.id_entreprise)
        try:
            product = await self.product_repo.add(product)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"[ProductService] Conflit d'intégrité création produit '{data.nom}': {e}")
            raise ProductNameAlreadyExistsException(data.nom)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"[ProductService] Erreur inattendue création produit: {e}", exc_info=True)
            raise

        logger.info(f"[ProductService] Produit {product.id} créé")
        return ProductRead.model_validate(product)

    async def get(self, product_id: uuid.UUID, actor: UserRead) -> ProductRead:
        product = await self.product_repo.get_read(product_id, actor.id_entreprise)
        if product is None:
            raise ProductNotFoundException(product_id)
        return product

    async def list(
        self, actor: UserRead, limit: int, offset: int, nom: Optional[str] = None
    ) -> Tuple[List[ProductRead], int]:
        return await self.product_repo.list(actor.id_entreprise, limit, offset, nom=nom)

    async def mouvements(
        self,
        product_id: uuid.UUID,
        actor: UserRead,
        entree_service: EntreeService,
        sortie_service: SortieService,
    ) -> ProductMouvements:
        """Produit, ses entrées et ses sorties, les plus récentes d'abord."""
        product = await self.get(product_id, actor)
        entrees, _ = await entree_service.list_company(actor, MOUVEMENTS_LIMIT, 0, id_product=product_id)
        sorties, _ = await sortie_service.list(actor, MOUVEMENTS_LIMIT, 0, id_product=product_id)
        return ProductMouvements(product=product, entrees=entrees, sorties=sorties)
