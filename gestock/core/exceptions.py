"""
Exceptions de base du domaine.

Chaque module définit ses propres exceptions en héritant de l'une de ces
quatre familles; les routeurs les traduisent en réponses HTTP via
`handle_domain_errors`.
"""
import logging
from typing import NoReturn

from fastapi import HTTPException, status

from gestock.config import settings

logger = logging.getLogger(__name__)


class DomainException(Exception):
    """Classe de base pour les exceptions métier."""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(DomainException):
    """Entrée invalide ou incomplète."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(DomainException):
    """Entité absente ou hors du périmètre de l'entreprise de l'appelant."""
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(DomainException):
    """Entité visible mais rôle ou propriété insuffisants."""
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(DomainException):
    """Violation de la machine à états ou de l'invariant de stock."""
    status_code = status.HTTP_409_CONFLICT


def handle_domain_errors(e: Exception, context: str = "API") -> NoReturn:
    """Convertit une exception en HTTPException. Toujours appelée dans un bloc except."""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, DomainException):
        logger.warning(f"[{context}] {type(e).__name__}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.exception(f"[{context}] Erreur inattendue: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=settings.INTERNAL_ERROR_MSG,
    )
