# gestock/demandes/models.py
"""
Modèles SQLModel pour les demandes de produits et leurs lignes.

Ce module contient :
- StatutDemande : états de la machine à états d'une demande.
- Demande, LigneDemande : tables.
- DemandeCreate, LigneDemandeCreate, DecisionDemande : schémas d'entrée.
- DemandeRead, LigneDemandeRead, ValidationDemandeResponse : schémas de sortie.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from gestock.core.utils import utcnow
from gestock.products.models import ProductRead
from gestock.sorties.models import SortieRead

if TYPE_CHECKING:
    from gestock.products.models import Product


class StatutDemande(str, Enum):
    EN_ATTENTE = "EN_ATTENTE"
    VALIDEE = "VALIDEE"
    REFUSEE = "REFUSEE"


# --- Tables ---

class DemandeBase(SQLModel):
    motif: Optional[str] = Field(default=None)
    agence: Optional[str] = Field(default=None, max_length=150)


class Demande(DemandeBase, table=True):
    __tablename__ = "demandes"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    id_entreprise: uuid.UUID = Field(foreign_key="entreprises.id", index=True, nullable=False)
    id_users: uuid.UUID = Field(foreign_key="users.id", index=True, nullable=False)
    statut: StatutDemande = Field(default=StatutDemande.EN_ATTENTE, nullable=False, index=True)
    notes_gestionnaire: Optional[str] = Field(default=None)
    date_demande: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    lignes: List["LigneDemande"] = Relationship(
        back_populates="demande",
        sa_relationship_kwargs={"order_by": "LigneDemande.position", "cascade": "all, delete-orphan"},
    )


class LigneDemande(SQLModel, table=True):
    __tablename__ = "ligne_demandes"
    __table_args__ = (UniqueConstraint("id_demande", "id_product", name="uq_ligne_demandes_demande_product"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    id_demande: uuid.UUID = Field(foreign_key="demandes.id", index=True, nullable=False)
    id_product: uuid.UUID = Field(foreign_key="products.id", nullable=False)
    quantite_demandee: int = Field(ge=1, nullable=False)
    position: int = Field(default=0, nullable=False)

    demande: Optional[Demande] = Relationship(back_populates="lignes")
    product: Optional["Product"] = Relationship()


# --- Schémas API ---

class LigneDemandeCreate(SQLModel):
    id_product: uuid.UUID
    quantite_demandee: int = Field(ge=1)


class DemandeCreate(DemandeBase):
    lignes: List[LigneDemandeCreate] = Field(min_length=1)


class DecisionDemande(SQLModel):
    """Corps optionnel des actions de validation et de refus."""
    notes_gestionnaire: Optional[str] = None


class LigneDemandeRead(SQLModel):
    id: uuid.UUID
    id_product: uuid.UUID
    quantite_demandee: int
    position: int
    product: Optional[ProductRead] = None


class DemandeRead(DemandeBase):
    id: uuid.UUID
    id_entreprise: uuid.UUID
    id_users: uuid.UUID
    statut: StatutDemande
    notes_gestionnaire: Optional[str] = None
    date_demande: datetime
    lignes: List[LigneDemandeRead] = []


class ValidationDemandeResponse(SQLModel):
    message: str
    sorties: List[SortieRead]
