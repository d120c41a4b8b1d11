# gestock/users/models.py
"""
Module définissant les modèles SQLModel pour l'entité User.

Ce module contient :
- UserBase : Classe SQLModel de base avec les champs communs.
- User : Modèle de table SQLModel (table=True) héritant de UserBase.
- UserRead, UserAuth : Schémas pour l'API et l'authentification.
"""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from gestock.auth.roles import Role
from gestock.core.utils import utcnow


class UserBase(SQLModel):
    """Modèle SQLModel de base pour un utilisateur (données communes, Pydantic)."""
    email: EmailStr = Field(unique=True, index=True, max_length=255, nullable=False)
    name: Optional[str] = Field(default=None, max_length=100)
    role: Role = Field(default=Role.AGENT, nullable=False)
    agence: Optional[str] = Field(default=None, max_length=150)
    is_active: bool = Field(default=True, nullable=False)
    id_entreprise: uuid.UUID = Field(foreign_key="entreprises.id", index=True)


class User(UserBase, table=True):
    """Modèle de table SQLModel pour les utilisateurs."""
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    password_hash: str = Field(nullable=False, max_length=255)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, nullable=False)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class UserRead(UserBase):
    """Utilisateur tel que vu par l'API et par les services (identité + entreprise + rôle)."""
    id: uuid.UUID


class UserAuth(SQLModel):
    """Colonnes nécessaires à la vérification du mot de passe."""
    id: uuid.UUID
    password_hash: str
    is_active: bool
