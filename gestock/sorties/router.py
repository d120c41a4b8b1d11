import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Response

from gestock.auth.dependencies import CurrentUser
from gestock.core.exceptions import handle_domain_errors
from gestock.core.schemas import PaginationParams, set_content_range
from gestock.sorties.dependencies import SortieServiceDep
from gestock.sorties.models import DecisionSortieResponse, SortieRead, StatutDirection

logger = logging.getLogger(__name__)

sortie_router = APIRouter(
    prefix="/sorties",
    tags=["Sorties"],
)


@sortie_router.get("", response_model=List[SortieRead])
async def list_sorties_endpoint(
    service: SortieServiceDep,
    current_user: CurrentUser,
    pagination: PaginationParams,
    response: Response,
    statut_direction: Optional[StatutDirection] = Query(default=None),
):
    """Liste les sorties de l'entreprise, filtrables par statut direction."""
    limit, offset = pagination
    try:
        sorties, total = await service.list(current_user, limit, offset, statut_direction=statut_direction)
    except Exception as e:
        handle_domain_errors(e, "Sorties.list")
    set_content_range(response, "sorties", offset, len(sorties), total)
    return sorties


@sortie_router.get("/{sortie_id}", response_model=SortieRead)
async def get_sortie_endpoint(
    service: SortieServiceDep,
    current_user: CurrentUser,
    sortie_id: uuid.UUID,
):
    try:
        return await service.get(sortie_id, current_user)
    except Exception as e:
        handle_domain_errors(e, "Sorties.get")


@sortie_router.post("/{sortie_id}/confirm", response_model=DecisionSortieResponse)
async def confirm_sortie_endpoint(
    service: SortieServiceDep,
    current_user: CurrentUser,
    sortie_id: uuid.UUID,
):
    """Confirme une sortie EN_ATTENTE et débite le stock."""
    try:
        sortie = await service.confirm(sortie_id, current_user)
    except Exception as e:
        handle_domain_errors(e, "Sorties.confirm")
    return DecisionSortieResponse(message="Sortie confirmée", sortie=sortie)


@sortie_router.post("/{sortie_id}/reject", response_model=DecisionSortieResponse)
async def reject_sortie_endpoint(
    service: SortieServiceDep,
    current_user: CurrentUser,
    sortie_id: uuid.UUID,
):
    try:
        sortie = await service.reject(sortie_id, current_user)
    except Exception as e:
        handle_domain_errors(e, "Sorties.reject")
    return DecisionSortieResponse(message="Sortie refusée", sortie=sortie)
