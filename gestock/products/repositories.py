import logging
import uuid
from typing import List, Optional, Tuple

from fastcrud import FastCRUD
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from gestock.products.models import Product, ProductRead

logger = logging.getLogger(__name__)


class ProductRepository:
    """Accès aux produits, toujours filtré par entreprise."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = FastCRUD(Product)

    async def get_read(self, product_id: uuid.UUID, id_entreprise: uuid.UUID) -> Optional[ProductRead]:
        logger.debug(f"[ProductRepository] Lecture produit {product_id} (entreprise {id_entreprise})")
        return await self.crud.get(
            self.db,
            schema_to_select=ProductRead,
            return_as_model=True,
            id=product_id,
            id_entreprise=id_entreprise,
        )

    async def exists(self, product_id: uuid.UUID, id_entreprise: uuid.UUID) -> bool:
        return await self.crud.exists(self.db, id=product_id, id_entreprise=id_entreprise)

    async def exists_nom(self, nom: str, id_entreprise: uuid.UUID) -> bool:
        return await self.crud.exists(self.db, nom=nom, id_entreprise=id_entreprise)

    async def ids_in_entreprise(self, product_ids: List[uuid.UUID], id_entreprise: uuid.UUID) -> set:
        """Retourne le sous-ensemble des IDs appartenant à l'entreprise."""
        if not product_ids:
            return set()
        stmt = select(Product.id).where(
            Product.id.in_(product_ids),
            Product.id_entreprise == id_entreprise,
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def add(self, product: Product) -> Product:
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        return product

    async def list(
        self,
        id_entreprise: uuid.UUID,
        limit: int,
        offset: int,
        nom: Optional[str] = None,
    ) -> Tuple[List[ProductRead], int]:
        filters = {"id_entreprise": id_entreprise}
        if nom:
            filters["nom__ilike"] = f"%{nom}%"
        result = await self.crud.get_multi(
            self.db,
            offset=offset,
            limit=limit,
            schema_to_select=ProductRead,
            return_as_model=True,
            sort_columns=["nom"],
            sort_orders=["asc"],
            **filters,
        )
        return result["data"], result["total_count"]

    async def list_low_stock(
        self, id_entreprise: uuid.UUID, limit: int, offset: int
    ) -> Tuple[List[Product], int]:
        """Produits dont la quantité en stock est inférieure ou égale à leur seuil d'alerte."""
        conditions = (
            Product.id_entreprise == id_entreprise,
            Product.quantite_stock <= Product.quantite_min_alerte,
        )
        total = await self.db.scalar(select(func.count()).select_from(Product).where(*conditions))
        stmt = (
            select(Product)
            .where(*conditions)
            .order_by(Product.quantite_stock.asc(), Product.nom.asc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0
