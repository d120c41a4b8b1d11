import logging
from typing import List

from fastapi import APIRouter, Response

from gestock.auth.dependencies import CurrentUser
from gestock.core.exceptions import handle_domain_errors
from gestock.core.schemas import PaginationParams, set_content_range
from gestock.products.models import ProductRead
from gestock.stock.dependencies import EntreeServiceDep
from gestock.stock.models import EntreeStockRead

logger = logging.getLogger(__name__)

stock_router = APIRouter(
    prefix="/stock",
    tags=["Stock"],
)


@stock_router.get("/entrees", response_model=List[EntreeStockRead])
async def list_entrees_endpoint(
    service: EntreeServiceDep,
    current_user: CurrentUser,
    pagination: PaginationParams,
    response: Response,
):
    """Liste les entrées de stock de l'entreprise, les plus récentes d'abord."""
    limit, offset = pagination
    try:
        entrees, total = await service.list_company(current_user, limit, offset)
    except Exception as e:
        handle_domain_errors(e, "Stock.list_entrees")
    set_content_range(response, "entrees", offset, len(entrees), total)
    return entrees


@stock_router.get("/alertes", response_model=List[ProductRead])
async def list_alertes_endpoint(
    service: EntreeServiceDep,
    current_user: CurrentUser,
    pagination: PaginationParams,
    response: Response,
):
    """Produits dont le stock est au niveau ou sous le seuil d'alerte."""
    limit, offset = pagination
    try:
        products, total = await service.list_alertes(current_user, limit, offset)
    except Exception as e:
        handle_domain_errors(e, "Stock.list_alertes")
    set_content_range(response, "products", offset, len(products), total)
    return products
