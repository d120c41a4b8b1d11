"""
Modèle SQLModel pour l'entreprise (tenant).

Toutes les données métier sont rattachées à une entreprise via `id_entreprise`.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from gestock.core.utils import utcnow


class EntrepriseBase(SQLModel):
    nom: str = Field(max_length=255, index=True)


class Entreprise(EntrepriseBase, table=True):
    __tablename__ = "entreprises"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class EntrepriseRead(EntrepriseBase):
    id: uuid.UUID
