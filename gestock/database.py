import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from gestock.config import settings

logger = logging.getLogger(__name__)

# Créer le moteur de base de données asynchrone (aucune connexion n'est ouverte ici)
engine = create_async_engine(
    settings.database_url,
    echo=settings.DB_ECHO_LOG,
    future=True,
)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Empêche les objets d'expirer après commit
)

logger.info("Moteur et Session Factory SQLAlchemy Async configurés.")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            # Les commits sont faits par les services, qui contrôlent les transactions.
            yield session
        except Exception as e:
            logger.error(f"Erreur durant la session DB, rollback: {e}", exc_info=True)
            await session.rollback()
            raise
        finally:
            await session.close()
            logger.debug("Session DB fermée.")


def import_models() -> None:
    """Importe tous les modèles de table pour peupler SQLModel.metadata."""
    from gestock.entreprises import models as _entreprises  # noqa: F401
    from gestock.users import models as _users  # noqa: F401
    from gestock.products import models as _products  # noqa: F401
    from gestock.demandes import models as _demandes  # noqa: F401
    from gestock.sorties import models as _sorties  # noqa: F401
    from gestock.stock import models as _stock  # noqa: F401


async def create_tables():
    """Crée toutes les tables définies."""
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

