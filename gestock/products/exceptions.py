"""
Exceptions personnalisées pour le module des produits.
"""
import uuid

from gestock.core.exceptions import ConflictError, ForbiddenError, NotFoundError


class ProductNotFoundException(NotFoundError):
    """Produit inexistant ou appartenant à une autre entreprise."""
    def __init__(self, product_id: uuid.UUID):
        self.product_id = product_id
        super().__init__(f"Produit {product_id} introuvable")


class ProductNameAlreadyExistsException(ConflictError):
    def __init__(self, nom: str):
        self.nom = nom
        super().__init__(f"Un produit nommé '{nom}' existe déjà dans cette entreprise")


class ProductManagementForbiddenException(ForbiddenError):
    def __init__(self):
        super().__init__("Accès interdit")
