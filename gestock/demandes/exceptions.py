"""Exceptions spécifiques au domaine Demande."""
import uuid
from typing import List

from gestock.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError


class DemandeNotFoundException(NotFoundError):
    """Demande absente ou appartenant à une autre entreprise."""
    def __init__(self, demande_id: uuid.UUID):
        self.demande_id = demande_id
        super().__init__(f"Demande {demande_id} introuvable")


class DemandeDejaTraiteeException(NotFoundError):
    """Validation d'une demande qui n'est plus EN_ATTENTE."""
    def __init__(self, demande_id: uuid.UUID):
        self.demande_id = demande_id
        super().__init__("Demande introuvable ou déjà traitée")


class DemandeNonRejetableException(ConflictError):
    """Refus d'une demande qui n'est plus EN_ATTENTE."""
    def __init__(self, demande_id: uuid.UUID):
        self.demande_id = demande_id
        super().__init__("Une demande validée ou refusée ne peut plus être rejetée")


class DemandeForbiddenException(ForbiddenError):
    def __init__(self, message: str = "Accès interdit"):
        super().__init__(message)


class DemandeSansLigneException(ValidationError):
    def __init__(self):
        super().__init__("Une demande doit contenir au moins une ligne")


class QuantiteDemandeeInvalideException(ValidationError):
    def __init__(self, quantite: int):
        self.quantite = quantite
        super().__init__(f"La quantité demandée doit être au moins 1 (reçu {quantite})")


class ProduitEnDoubleException(ValidationError):
    def __init__(self, product_id: uuid.UUID):
        self.product_id = product_id
        super().__init__(f"Le produit {product_id} apparaît plusieurs fois dans la demande")


class ProduitsInconnusException(ValidationError):
    """Produits absents ou hors de l'entreprise du demandeur."""
    def __init__(self, product_ids: List[uuid.UUID]):
        self.product_ids = product_ids
        ids_str = ", ".join(str(pid) for pid in product_ids)
        super().__init__(f"Produit(s) invalide(s) pour cette entreprise: {ids_str}")
