import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Query, Response, status

from gestock.auth.dependencies import CurrentUser
from gestock.core.exceptions import handle_domain_errors
from gestock.core.schemas import MessageResponse, PaginationParams, set_content_range
from gestock.demandes.dependencies import DemandeServiceDep
from gestock.demandes.models import (
    DecisionDemande,
    DemandeCreate,
    DemandeRead,
    StatutDemande,
    ValidationDemandeResponse,
)
from gestock.sorties.models import SortieRead

logger = logging.getLogger(__name__)

demande_router = APIRouter(
    prefix="/demandes",
    tags=["Demandes"],
)


@demande_router.post("", response_model=DemandeRead, status_code=status.HTTP_201_CREATED)
async def create_demande_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    demande_data: DemandeCreate,
):
    """Crée une demande EN_ATTENTE pour l'utilisateur authentifié."""
    try:
        return await service.create(current_user, demande_data)
    except Exception as e:
        handle_domain_errors(e, "Demandes.create")


@demande_router.get("/me", response_model=List[DemandeRead])
async def list_my_demandes_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    pagination: PaginationParams,
    response: Response,
):
    """Liste les demandes de l'utilisateur authentifié, les plus récentes d'abord."""
    limit, offset = pagination
    try:
        demandes, total = await service.list_mine(current_user, limit, offset)
    except Exception as e:
        handle_domain_errors(e, "Demandes.list_mine")
    set_content_range(response, "demandes", offset, len(demandes), total)
    return demandes


@demande_router.get("", response_model=List[DemandeRead])
async def list_company_demandes_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    pagination: PaginationParams,
    response: Response,
    statut: Optional[StatutDemande] = Query(default=None),
):
    """Liste toutes les demandes de l'entreprise (administrateurs)."""
    limit, offset = pagination
    try:
        demandes, total = await service.list_company(current_user, limit, offset, statut=statut)
    except Exception as e:
        handle_domain_errors(e, "Demandes.list_company")
    set_content_range(response, "demandes", offset, len(demandes), total)
    return demandes


@demande_router.get("/{demande_id}", response_model=DemandeRead)
async def get_demande_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    demande_id: uuid.UUID,
):
    try:
        return await service.get(demande_id, current_user)
    except Exception as e:
        handle_domain_errors(e, "Demandes.get")


@demande_router.post("/{demande_id}/validate", response_model=ValidationDemandeResponse)
async def validate_demande_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    demande_id: uuid.UUID,
    decision: Optional[DecisionDemande] = Body(default=None),
):
    """Valide une demande EN_ATTENTE et génère ses sorties de stock."""
    notes = decision.notes_gestionnaire if decision else None
    try:
        return await service.validate(demande_id, current_user, notes)
    except Exception as e:
        handle_domain_errors(e, "Demandes.validate")


@demande_router.post("/{demande_id}/reject", response_model=MessageResponse)
async def reject_demande_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    demande_id: uuid.UUID,
    decision: Optional[DecisionDemande] = Body(default=None),
):
    notes = decision.notes_gestionnaire if decision else None
    try:
        await service.reject(demande_id, current_user, notes)
    except Exception as e:
        handle_domain_errors(e, "Demandes.reject")
    return MessageResponse(message="Demande refusée")


@demande_router.get("/{demande_id}/sorties", response_model=List[SortieRead])
async def list_demande_sorties_endpoint(
    service: DemandeServiceDep,
    current_user: CurrentUser,
    demande_id: uuid.UUID,
    pagination: PaginationParams,
    response: Response,
):
    """Sorties générées par la validation de la demande."""
    limit, offset = pagination
    try:
        sorties, total = await service.list_sorties(demande_id, current_user, limit, offset)
    except Exception as e:
        handle_domain_errors(e, "Demandes.list_sorties")
    set_content_range(response, "sorties", offset, len(sorties), total)
    return sorties
