# gestock/products/models.py
"""
Modèles SQLModel pour les produits d'une entreprise.

La quantité en stock n'est modifiée, après création, que par le registre de
stock (`gestock.stock.ledger`).
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from gestock.core.utils import utcnow
from gestock.sorties.models import SortieRead
from gestock.stock.models import EntreeStockRead


class ProductBase(SQLModel):
    nom: str = Field(max_length=150, nullable=False)
    reference: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None)
    quantite_min_alerte: int = Field(default=5, ge=0, nullable=False)
    prix: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    agence: Optional[str] = Field(default=None, max_length=150)


class Product(ProductBase, table=True):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("id_entreprise", "nom", name="uq_products_entreprise_nom"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    id_entreprise: uuid.UUID = Field(foreign_key="entreprises.id", index=True, nullable=False)
    quantite_stock: int = Field(default=0, ge=0, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class ProductCreate(ProductBase):
    """Schéma de création: la quantité initiale est fixée ici, puis seul le registre la modifie."""
    quantite_stock: int = Field(default=0, ge=0)


class ProductRead(ProductBase):
    id: uuid.UUID
    id_entreprise: uuid.UUID
    quantite_stock: int
    created_at: datetime


class ProductMouvements(SQLModel):
    """Produit avec l'historique de ses entrées et sorties."""
    product: ProductRead
    entrees: List[EntreeStockRead]
    sorties: List[SortieRead]
