# gestock/stock/models.py
"""
Modèles SQLModel pour les entrées de stock (réceptions).

Une entrée crédite immédiatement la quantité du produit, dans la même
transaction que sa création.
"""
import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from gestock.core.utils import utcnow


class EntreesStockBase(SQLModel):
    quantite_entree: int = Field(ge=1, nullable=False)
    fournisseur: Optional[str] = Field(default=None, max_length=255)
    num_ordre: Optional[str] = Field(default=None, max_length=255)


class EntreesStock(EntreesStockBase, table=True):
    __tablename__ = "entrees_stocks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    id_entreprise: uuid.UUID = Field(foreign_key="entreprises.id", index=True, nullable=False)
    id_product: uuid.UUID = Field(foreign_key="products.id", index=True, nullable=False)
    id_users: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    date_reception: date = Field(default_factory=date.today, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False, index=True)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class EntreeStockCreate(EntreesStockBase):
    date_reception: Optional[date] = None


class EntreeStockRead(EntreesStockBase):
    id: uuid.UUID
    id_entreprise: uuid.UUID
    id_product: uuid.UUID
    id_users: uuid.UUID
    date_reception: date
    created_at: datetime
