"""Exceptions spécifiques aux sorties de stock."""
import uuid

from gestock.core.exceptions import ConflictError, ForbiddenError, NotFoundError


class SortieNotFoundException(NotFoundError):
    """Sortie absente, hors entreprise, ou déjà traitée."""
    def __init__(self, sortie_id: uuid.UUID, message: str = None):
        self.sortie_id = sortie_id
        super().__init__(message or f"Sortie {sortie_id} introuvable")


class SortieDejaTraiteeException(SortieNotFoundException):
    def __init__(self, sortie_id: uuid.UUID):
        super().__init__(sortie_id, "Sortie introuvable ou déjà traitée")


class DemandeNonValideeException(ConflictError):
    def __init__(self, demande_id: uuid.UUID):
        self.demande_id = demande_id
        super().__init__("Demande non validée")


class SortieForbiddenException(ForbiddenError):
    def __init__(self):
        super().__init__("Accès interdit")
