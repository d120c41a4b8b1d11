import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gestock.database import get_db_session
from gestock.products.repositories import ProductRepository
from gestock.products.service import ProductService

logger = logging.getLogger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_product_repository(session: SessionDep) -> ProductRepository:
    """Fournit une instance du ProductRepository."""
    return ProductRepository(db=session)


ProductRepositoryDep = Annotated[ProductRepository, Depends(get_product_repository)]


def get_product_service(product_repo: ProductRepositoryDep) -> ProductService:
    """Fournit une instance du ProductService."""
    return ProductService(product_repo=product_repo)


ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]
