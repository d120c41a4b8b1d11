# gestock/sorties/models.py
"""
Modèles SQLModel pour les sorties de stock et le compteur de numéros d'ordre.

Une sortie n'est créée que par la validation d'une demande (une par ligne),
puis confirmée ou refusée par la direction.
"""
import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Relationship, SQLModel

from gestock.core.utils import utcnow

if TYPE_CHECKING:
    from gestock.demandes.models import Demande
    from gestock.products.models import Product


class StatutDirection(str, Enum):
    EN_ATTENTE = "EN_ATTENTE"
    CONFIRMEE = "CONFIRMEE"
    REFUSEE = "REFUSEE"


class SortieStockBase(SQLModel):
    num_ordre: str = Field(max_length=30, index=True, nullable=False)
    quantite_sortie: int = Field(ge=1, nullable=False)
    statut_direction: StatutDirection = Field(default=StatutDirection.EN_ATTENTE, nullable=False, index=True)


class SortieStock(SortieStockBase, table=True):
    __tablename__ = "sorties_stock"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    id_entreprise: uuid.UUID = Field(foreign_key="entreprises.id", index=True, nullable=False)
    id_product: uuid.UUID = Field(foreign_key="products.id", index=True, nullable=False)
    id_demande: uuid.UUID = Field(foreign_key="demandes.id", index=True, nullable=False)
    # Demandeur de la demande d'origine, pas l'administrateur qui l'a validée
    id_users: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    date_sortie: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    product: Optional["Product"] = Relationship()
    demande: Optional["Demande"] = Relationship()


class SortieRead(SortieStockBase):
    id: uuid.UUID
    id_entreprise: uuid.UUID
    id_product: uuid.UUID
    id_demande: uuid.UUID
    id_users: uuid.UUID
    date_sortie: datetime


class CompteurOrdre(SQLModel, table=True):
    """Dernier numéro d'ordre attribué pour un jour donné."""
    __tablename__ = "compteurs_ordre"

    jour: date = Field(primary_key=True)
    dernier_numero: int = Field(default=0, nullable=False)


class DecisionSortieResponse(SQLModel):
    message: str
    sortie: SortieRead
