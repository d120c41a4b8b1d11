import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from gestock.auth.dependencies import CurrentUser
from gestock.core.exceptions import handle_domain_errors
from gestock.core.schemas import PaginationParams, set_content_range
from gestock.products.dependencies import ProductServiceDep
from gestock.products.models import ProductCreate, ProductMouvements, ProductRead
from gestock.sorties.dependencies import SortieServiceDep
from gestock.sorties.models import SortieRead
from gestock.stock.dependencies import EntreeServiceDep
from gestock.stock.models import EntreeStockCreate, EntreeStockRead

logger = logging.getLogger(__name__)

product_router = APIRouter(
    prefix="/products",
    tags=["Products"],
)


@product_router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(
    service: ProductServiceDep,
    current_user: CurrentUser,
    product_data: ProductCreate,
):
    """Crée un produit dans l'entreprise de l'utilisateur (administrateurs)."""
    try:
        return await service.create(current_user, product_data)
    except Exception as e:
        handle_domain_errors(e, "Products.create")


@product_router.get("", response_model=List[ProductRead])
async def list_products_endpoint(
    service: ProductServiceDep,
    current_user: CurrentUser,
    pagination: PaginationParams,
    response: Response,
    nom: Optional[str] = Query(default=None, description="Filtre sur le nom (contient)"),
):
    limit, offset = pagination
    try:
        products, total = await service.list(current_user, limit, offset, nom=nom)
    except Exception as e:
        handle_domain_errors(e, "Products.list")
    set_content_range(response, "products", offset, len(products), total)
    return products


@product_router.get("/{product_id}", response_model=ProductRead)
async def get_product_endpoint(
    service: ProductServiceDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
):
    try:
        return await service.get(product_id, current_user)
    except Exception as e:
        handle_domain_errors(e, "Products.get")


@product_router.post(
    "/{product_id}/entrees", response_model=EntreeStockRead, status_code=status.HTTP_201_CREATED
)
async def create_entree_endpoint(
    entree_service: EntreeServiceDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
    entree_data: EntreeStockCreate,
):
    """Enregistre une réception de stock et crédite le produit."""
    try:
        return await entree_service.create(product_id, current_user, entree_data)
    except Exception as e:
        handle_domain_errors(e, "Products.create_entree")


@product_router.get("/{product_id}/entrees", response_model=List[EntreeStockRead])
async def list_product_entrees_endpoint(
    entree_service: EntreeServiceDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
    pagination: PaginationParams,
    response: Response,
):
    limit, offset = pagination
    try:
        entrees, total = await entree_service.list_for_product(product_id, current_user, limit, offset)
    except Exception as e:
        handle_domain_errors(e, "Products.list_entrees")
    set_content_range(response, "entrees", offset, len(entrees), total)
    return entrees


@product_router.get("/{product_id}/sorties", response_model=List[SortieRead])
async def list_product_sorties_endpoint(
    service: ProductServiceDep,
    sortie_service: SortieServiceDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
    pagination: PaginationParams,
    response: Response,
):
    limit, offset = pagination
    try:
        await service.get(product_id, current_user)
        sorties, total = await sortie_service.list(current_user, limit, offset, id_product=product_id)
    except Exception as e:
        handle_domain_errors(e, "Products.list_sorties")
    set_content_range(response, "sorties", offset, len(sorties), total)
    return sorties


@product_router.get("/{product_id}/mouvements", response_model=ProductMouvements)
async def get_product_mouvements_endpoint(
    service: ProductServiceDep,
    entree_service: EntreeServiceDep,
    sortie_service: SortieServiceDep,
    current_user: CurrentUser,
    product_id: uuid.UUID,
):
    """Produit avec ses entrées et ses sorties."""
    try:
        return await service.mouvements(product_id, current_user, entree_service, sortie_service)
    except Exception as e:
        handle_domain_errors(e, "Products.mouvements")
