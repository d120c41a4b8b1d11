"""
Rôles utilisateur et capacités associées.

Le contrôle d'accès passe par `role.can(Action.X)`; le libellé affiché
(« Admin », « Contrôle »...) n'intervient jamais dans une décision.
"""
from enum import Enum
from typing import Dict, FrozenSet


class Action(str, Enum):
    CREER_DEMANDE = "CREER_DEMANDE"
    CONSULTER_DEMANDES_ENTREPRISE = "CONSULTER_DEMANDES_ENTREPRISE"
    VALIDER_DEMANDE = "VALIDER_DEMANDE"
    REFUSER_DEMANDE = "REFUSER_DEMANDE"
    CONFIRMER_SORTIE = "CONFIRMER_SORTIE"
    REFUSER_SORTIE = "REFUSER_SORTIE"
    CONSULTER_STOCK = "CONSULTER_STOCK"
    ENREGISTRER_ENTREE = "ENREGISTRER_ENTREE"
    GERER_PRODUITS = "GERER_PRODUITS"


class Role(str, Enum):
    ADMIN = "ADMIN"
    DIRECTION = "DIRECTION"
    CONTROLE = "CONTROLE"
    AGENCE = "AGENCE"
    AGENT = "AGENT"

    @property
    def libelle(self) -> str:
        return ROLE_LIBELLES[self]

    def can(self, action: Action) -> bool:
        return action in CAPACITES.get(self, frozenset())


ROLE_LIBELLES: Dict[Role, str] = {
    Role.ADMIN: "Admin",
    Role.DIRECTION: "Direction",
    Role.CONTROLE: "Contrôle",
    Role.AGENCE: "Agence",
    Role.AGENT: "Agent",
}

_COMMUNES = frozenset({Action.CREER_DEMANDE, Action.CONSULTER_STOCK})

CAPACITES: Dict[Role, FrozenSet[Action]] = {
    Role.ADMIN: frozenset(Action),
    Role.DIRECTION: _COMMUNES | {Action.CONFIRMER_SORTIE, Action.REFUSER_SORTIE},
    Role.CONTROLE: _COMMUNES,
    Role.AGENCE: _COMMUNES,
    Role.AGENT: _COMMUNES,
}
