"""
Service d'authentification pour l'API.

Contient la logique métier pour:
- L'authentification des utilisateurs (email + mot de passe)
- L'obtention de l'utilisateur courant à partir d'un token JWT
"""
import logging
from typing import Optional

from fastcrud import FastCRUD
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.auth.security import decode_access_token, verify_password
from gestock.users.models import UserAuth, UserRead

logger = logging.getLogger(__name__)


class AuthService:
    """Service pour gérer l'authentification des utilisateurs avec FastCRUD."""

    def __init__(self, user_crud: FastCRUD, db: AsyncSession):
        self.user_crud = user_crud
        self.db = db

    async def authenticate_user(self, email: str, password: str) -> Optional[UserAuth]:
        """Authentifie un utilisateur par email et mot de passe. Retourne None si échec."""
        logger.debug(f"[AuthService] Tentative d'authentification pour: {email}")

        user: Optional[UserAuth] = await self.user_crud.get(
            self.db, schema_to_select=UserAuth, return_as_model=True, email=email
        )
        if user is None:
            logger.warning(f"[AuthService] Utilisateur non trouvé: {email}")
            return None

        if not verify_password(password, user.password_hash):
            logger.warning(f"[AuthService] Mot de passe incorrect pour: {email}")
            return None

        logger.info(f"[AuthService] Authentification réussie pour: {email} (ID: {user.id})")
        return user

    async def get_user_from_token(self, token: str) -> Optional[UserRead]:
        """Récupère un utilisateur à partir d'un token JWT. Retourne None si invalide."""
        user_id = decode_access_token(token)
        if user_id is None:
            logger.warning("[AuthService] Token invalide ou expiré")
            return None

        user: Optional[UserRead] = await self.user_crud.get(
            self.db, schema_to_select=UserRead, return_as_model=True, id=user_id
        )
        if user is None:
            logger.warning(f"[AuthService] Utilisateur ID {user_id} du token non trouvé en base")
            return None

        logger.debug(f"[AuthService] Utilisateur récupéré depuis token: ID {user_id}")
        return user
