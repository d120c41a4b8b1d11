"""
Exceptions personnalisées pour le module de gestion des stocks.
"""
import uuid

from gestock.core.exceptions import ConflictError, ForbiddenError, ValidationError


class InvalidStockMovementException(ValidationError):
    """Levée lorsque la quantité d'un mouvement de stock est invalide."""
    def __init__(self, quantite: int):
        self.quantite = quantite
        super().__init__(f"Mouvement de stock invalide: la quantité doit être positive (reçu {quantite})")


class StockInsuffisantException(ConflictError):
    """Levée lorsque le stock est insuffisant pour une sortie."""
    def __init__(self, product_id: uuid.UUID, requested: int, available: int = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__("Stock insuffisant")


class EntreeForbiddenException(ForbiddenError):
    def __init__(self):
        super().__init__("Accès interdit")
