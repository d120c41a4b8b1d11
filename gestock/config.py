import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()

DEFAULT_JWT_SECRET_KEY = "remplacer_par_une_vraie_cle_secrete_forte"


class Settings(BaseSettings):
    # --- Base de Données ---
    POSTGRES_DB: str = "gestock"
    POSTGRES_USER: str = "gestock"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    # URL complète optionnelle, prioritaire sur les variables POSTGRES_*
    DATABASE_URL: Optional[str] = None
    DB_ECHO_LOG: bool = False
    # Crée les tables manquantes au démarrage (développement uniquement)
    DB_CREATE_TABLES: bool = False

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    # --- Application ---
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # --- JWT ---
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- Sorties de stock ---
    # "compteur": compteur journalier atomique, "scan": relecture du dernier num_ordre du jour
    ORDER_NUMBER_STRATEGY: str = "compteur"
    ORDER_NUMBER_PREFIX: str = "SO"

    # --- Messages Génériques ---
    INTERNAL_ERROR_MSG: str = "Erreur interne du serveur."

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()

if settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY:
    logger.warning("La variable JWT_SECRET_KEY utilise la valeur par défaut. Veuillez définir une clé secrète forte.")

if settings.ORDER_NUMBER_STRATEGY not in ("compteur", "scan"):
    logger.warning(
        f"ORDER_NUMBER_STRATEGY='{settings.ORDER_NUMBER_STRATEGY}' inconnue, utilisation de 'compteur'."
    )

logger.info(f"Configuration chargée: DB={settings.POSTGRES_DB}@{settings.POSTGRES_HOST}, numérotation={settings.ORDER_NUMBER_STRATEGY}")
