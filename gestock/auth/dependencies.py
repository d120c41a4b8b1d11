"""
Module définissant les dépendances FastAPI pour l'authentification.

Fournit des dépendances pour:
- Le service d'authentification (AuthService)
- L'obtention de l'utilisateur courant à partir du token JWT
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from fastcrud import FastCRUD
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.auth.config import OAUTH2_TOKEN_URL
from gestock.auth.exceptions import InactiveUserException, TokenInvalidException, TokenMissingException
from gestock.auth.service import AuthService
from gestock.database import get_db_session
from gestock.users.models import User, UserRead

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=OAUTH2_TOKEN_URL, auto_error=False)

DbSessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_auth_service(db: DbSessionDep) -> AuthService:
    """Fournit une instance du service d'authentification."""
    return AuthService(user_crud=FastCRUD(User), db=db)


async def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserRead:
    """
    Vérifie le token JWT et retourne l'utilisateur courant.

    Raises:
        TokenMissingException: Si le token est manquant
        TokenInvalidException: Si le token est invalide ou l'utilisateur inconnu
        InactiveUserException: Si le compte est désactivé
    """
    if token is None:
        logger.warning("Token manquant dans la requête.")
        raise TokenMissingException()

    user = await auth_service.get_user_from_token(token)
    if user is None:
        raise TokenInvalidException()

    if not user.is_active:
        logger.warning(f"Tentative d'accès par un utilisateur inactif: ID {user.id}")
        raise InactiveUserException()

    logger.debug(f"Utilisateur authentifié: ID {user.id} (rôle {user.role.value})")
    return user


CurrentUser = Annotated[UserRead, Depends(get_current_user)]
