"""
Module principal de l'application FastAPI Gestock.

Ce module configure et initialise l'instance FastAPI, ajoute le middleware CORS
et inclut les routeurs de l'API (authentification, produits, stock, demandes,
sorties).
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gestock.config import settings
from gestock.database import create_tables

# --- Importer les routeurs ---
from gestock.auth.router import auth_router
from gestock.demandes.router import demande_router
from gestock.products.router import product_router
from gestock.sorties.router import sortie_router
from gestock.stock.router import stock_router

# Configurer le logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_CREATE_TABLES:
        logger.info("Création des tables manquantes...")
        await create_tables()
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Gestock API",
    description="API de gestion des stocks multi-entreprises: demandes, validations, entrées et sorties.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range"],
)

# ======================================================
# Inclure les routeurs
# ======================================================
app.include_router(auth_router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["Authentification"])
app.include_router(product_router, prefix=settings.API_V1_PREFIX)
app.include_router(stock_router, prefix=settings.API_V1_PREFIX)
app.include_router(demande_router, prefix=settings.API_V1_PREFIX)
app.include_router(sortie_router, prefix=settings.API_V1_PREFIX)


logger.info("Application FastAPI Gestock configurée.")
