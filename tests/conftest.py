# Standard Library
from typing import AsyncGenerator

# Third-Party Libraries
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# First-Party Libraries
from gestock.auth.roles import Role
from gestock.auth.security import create_access_token, get_password_hash
from gestock.database import get_db_session, import_models
from gestock.entreprises.models import Entreprise
from gestock.main import app
from gestock.products.models import Product
from gestock.users.models import User

# URL de base pour la DB en mémoire
TEST_DATABASE_BASE_URL = "sqlite+aiosqlite:///:memory:"

PASSWORD = "motdepasse"


# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crée un engine, des tables, et fournit une session DB en mémoire pour chaque test."""
    engine: AsyncEngine = create_async_engine(TEST_DATABASE_BASE_URL, echo=False)

    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=True,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with TestingSessionLocal() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Fournit un AsyncClient httpx qui utilise la session DB de test isolée."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    del app.dependency_overrides[get_db_session]


# --- Fixtures Entreprises ---

async def _add(db_session: AsyncSession, obj):
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest_asyncio.fixture(scope="function")
async def entreprise(db_session: AsyncSession) -> Entreprise:
    return await _add(db_session, Entreprise(nom="Entreprise Test"))


@pytest_asyncio.fixture(scope="function")
async def autre_entreprise(db_session: AsyncSession) -> Entreprise:
    return await _add(db_session, Entreprise(nom="Autre Entreprise"))


# --- Fixtures Utilisateur et Authentification ---

async def _create_user(
    db_session: AsyncSession, email: str, role: Role, entreprise: Entreprise, is_active: bool = True
) -> User:
    user = User(
        email=email,
        name=email.split("@")[0],
        role=role,
        id_entreprise=entreprise.id,
        is_active=is_active,
        password_hash=get_password_hash(PASSWORD),
    )
    return await _add(db_session, user)


def _headers(user: User) -> dict[str, str]:
    access_token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {access_token}"}


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession, entreprise: Entreprise) -> User:
    return await _create_user(db_session, "admin@example.com", Role.ADMIN, entreprise)


@pytest_asyncio.fixture(scope="function")
async def agent_user(db_session: AsyncSession, entreprise: Entreprise) -> User:
    return await _create_user(db_session, "agent@example.com", Role.AGENT, entreprise)


@pytest_asyncio.fixture(scope="function")
async def agent_user_2(db_session: AsyncSession, entreprise: Entreprise) -> User:
    return await _create_user(db_session, "agent2@example.com", Role.AGENT, entreprise)


@pytest_asyncio.fixture(scope="function")
async def directeur_user(db_session: AsyncSession, entreprise: Entreprise) -> User:
    return await _create_user(db_session, "direction@example.com", Role.DIRECTION, entreprise)


@pytest_asyncio.fixture(scope="function")
async def admin_autre(db_session: AsyncSession, autre_entreprise: Entreprise) -> User:
    """Administrateur d'une autre entreprise."""
    return await _create_user(db_session, "admin@autre.example.com", Role.ADMIN, autre_entreprise)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_admin(admin_user: User) -> dict[str, str]:
    return _headers(admin_user)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_agent(agent_user: User) -> dict[str, str]:
    return _headers(agent_user)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_agent_2(agent_user_2: User) -> dict[str, str]:
    return _headers(agent_user_2)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_directeur(directeur_user: User) -> dict[str, str]:
    return _headers(directeur_user)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_admin_autre(admin_autre: User) -> dict[str, str]:
    return _headers(admin_autre)


# --- Fixtures Produits ---
# Les tests relisent la quantité avec db_session.refresh(): le registre écrit par UPDATE direct.

@pytest_asyncio.fixture(scope="function")
async def produit(db_session: AsyncSession, entreprise: Entreprise) -> Product:
    """Produit avec 10 unités en stock (seuil d'alerte 5)."""
    product = Product(nom="Ramette papier A4", reference="PAP-A4", quantite_stock=10, id_entreprise=entreprise.id)
    return await _add(db_session, product)


@pytest_asyncio.fixture(scope="function")
async def produit_b(db_session: AsyncSession, entreprise: Entreprise) -> Product:
    """Produit avec 2 unités en stock, sous le seuil d'alerte."""
    product = Product(nom="Cartouche encre", quantite_stock=2, id_entreprise=entreprise.id)
    return await _add(db_session, product)


@pytest_asyncio.fixture(scope="function")
async def produit_autre(db_session: AsyncSession, autre_entreprise: Entreprise) -> Product:
    product = Product(nom="Ramette papier A4", quantite_stock=50, id_entreprise=autre_entreprise.id)
    return await _add(db_session, product)


# --- Helpers workflow ---

async def creer_demande(client: AsyncClient, headers: dict[str, str], lignes: list, motif: str = "Besoin bureau") -> dict:
    """Crée une demande via l'API. `lignes` est une liste de (product_id, quantite)."""
    payload = {
        "motif": motif,
        "lignes": [{"id_product": str(pid), "quantite_demandee": q} for pid, q in lignes],
    }
    response = await client.post("/api/v1/demandes", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def valider_demande(client: AsyncClient, headers: dict[str, str], demande_id: str) -> list:
    """Valide une demande via l'API et retourne les sorties créées."""
    response = await client.post(f"/api/v1/demandes/{demande_id}/validate", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["sorties"]
