"""
Tests d'intégration pour le cycle de vie des demandes.
"""
import re
import uuid

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from gestock.config import settings
from gestock.products.models import Product
from gestock.sorties.models import SortieStock
from gestock.sorties.numerotation import NumeroOrdreGenerator
from gestock.users.models import User

from conftest import creer_demande, valider_demande

API_PREFIX = settings.API_V1_PREFIX
NUM_ORDRE_RE = re.compile(r"^SO-\d{8}-\d{3,}$")

pytestmark = pytest.mark.asyncio


# --- Création (POST /demandes) ---

async def test_create_demande(
    test_client: AsyncClient,
    agent_user: User,
    produit: Product,
    produit_b: Product,
    auth_headers_agent: dict[str, str],
):
    agent_id, produit_id, produit_b_id = agent_user.id, produit.id, produit_b.id
    demande = await creer_demande(test_client, auth_headers_agent, [(produit_b_id, 1), (produit_id, 3)])

    assert demande["statut"] == "EN_ATTENTE"
    assert demande["id_users"] == str(agent_id)
    assert demande["motif"] == "Besoin bureau"
    assert [ligne["id_product"] for ligne in demande["lignes"]] == [str(produit_b_id), str(produit_id)]
    assert [ligne["position"] for ligne in demande["lignes"]] == [0, 1]
    assert demande["lignes"][1]["quantite_demandee"] == 3
    assert demande["lignes"][1]["product"]["nom"] == "Ramette papier A4"


async def test_create_demande_without_lines(test_client: AsyncClient, auth_headers_agent: dict[str, str]):
    response = await test_client.post(
        f"{API_PREFIX}/demandes", json={"motif": "vide", "lignes": []}, headers=auth_headers_agent
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_create_demande_zero_quantity(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str]
):
    payload = {"lignes": [{"id_product": str(produit.id), "quantite_demandee": 0}]}
    response = await test_client.post(f"{API_PREFIX}/demandes", json=payload, headers=auth_headers_agent)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_create_demande_duplicate_product(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str]
):
    ligne = {"id_product": str(produit.id), "quantite_demandee": 1}
    response = await test_client.post(
        f"{API_PREFIX}/demandes", json={"lignes": [ligne, ligne]}, headers=auth_headers_agent
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_create_demande_foreign_product(
    test_client: AsyncClient, produit_autre: Product, auth_headers_agent: dict[str, str]
):
    payload = {"lignes": [{"id_product": str(produit_autre.id), "quantite_demandee": 1}]}
    response = await test_client.post(f"{API_PREFIX}/demandes", json=payload, headers=auth_headers_agent)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_create_demande_unknown_product(test_client: AsyncClient, auth_headers_agent: dict[str, str]):
    payload = {"lignes": [{"id_product": str(uuid.uuid4()), "quantite_demandee": 1}]}
    response = await test_client.post(f"{API_PREFIX}/demandes", json=payload, headers=auth_headers_agent)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_create_demande_unauthenticated(test_client: AsyncClient, produit: Product):
    payload = {"lignes": [{"id_product": str(produit.id), "quantite_demandee": 1}]}
    response = await test_client.post(f"{API_PREFIX}/demandes", json=payload)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# --- Lecture ---

async def test_list_my_demandes(
    test_client: AsyncClient,
    produit: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_agent_2: dict[str, str],
):
    produit_id = produit.id
    premiere = await creer_demande(test_client, auth_headers_agent, [(produit_id, 1)], motif="première")
    seconde = await creer_demande(test_client, auth_headers_agent, [(produit_id, 2)], motif="seconde")
    await creer_demande(test_client, auth_headers_agent_2, [(produit_id, 1)])

    response = await test_client.get(f"{API_PREFIX}/demandes/me", headers=auth_headers_agent)
    assert response.status_code == status.HTTP_200_OK
    assert [d["id"] for d in response.json()] == [seconde["id"], premiere["id"]]
    assert response.headers["Content-Range"] == "demandes 0-1/2"


async def test_list_company_demandes_admin(
    test_client: AsyncClient,
    produit: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_agent_2: dict[str, str],
    auth_headers_admin: dict[str, str],
):
    produit_id = produit.id
    d1 = await creer_demande(test_client, auth_headers_agent, [(produit_id, 1)])
    d2 = await creer_demande(test_client, auth_headers_agent_2, [(produit_id, 1)])
    await valider_demande(test_client, auth_headers_admin, d1["id"])

    response = await test_client.get(f"{API_PREFIX}/demandes", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    assert {d["id"] for d in response.json()} == {d1["id"], d2["id"]}

    response = await test_client.get(
        f"{API_PREFIX}/demandes", params={"statut": "EN_ATTENTE"}, headers=auth_headers_admin
    )
    assert [d["id"] for d in response.json()] == [d2["id"]]


async def test_list_company_demandes_forbidden_for_agent(
    test_client: AsyncClient, auth_headers_agent: dict[str, str]
):
    response = await test_client.get(f"{API_PREFIX}/demandes", headers=auth_headers_agent)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_get_demande_visibility(
    test_client: AsyncClient,
    produit: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_agent_2: dict[str, str],
    auth_headers_admin: dict[str, str],
    auth_headers_admin_autre: dict[str, str],
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    url = f"{API_PREFIX}/demandes/{demande['id']}"

    assert (await test_client.get(url, headers=auth_headers_agent)).status_code == status.HTTP_200_OK
    assert (await test_client.get(url, headers=auth_headers_admin)).status_code == status.HTTP_200_OK
    assert (await test_client.get(url, headers=auth_headers_agent_2)).status_code == status.HTTP_403_FORBIDDEN
    assert (await test_client.get(url, headers=auth_headers_admin_autre)).status_code == status.HTTP_404_NOT_FOUND


# --- Validation (POST /demandes/{id}/validate) ---

async def test_validate_creates_one_sortie_per_line(
    test_client: AsyncClient,
    agent_user: User,
    produit: Product,
    produit_b: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_admin: dict[str, str],
):
    agent_id, produit_id, produit_b_id = agent_user.id, produit.id, produit_b.id
    demande = await creer_demande(test_client, auth_headers_agent, [(produit_id, 3), (produit_b_id, 1)])

    response = await test_client.post(
        f"{API_PREFIX}/demandes/{demande['id']}/validate",
        json={"notes_gestionnaire": "OK pour ce mois"},
        headers=auth_headers_admin,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["message"] == "Demande validée, sorties créées"

    sorties = data["sorties"]
    assert len(sorties) == 2
    assert [s["id_product"] for s in sorties] == [str(produit_id), str(produit_b_id)]
    assert [s["quantite_sortie"] for s in sorties] == [3, 1]
    assert all(s["statut_direction"] == "EN_ATTENTE" for s in sorties)
    assert all(s["id_users"] == str(agent_id) for s in sorties)
    assert all(NUM_ORDRE_RE.match(s["num_ordre"]) for s in sorties)
    assert sorties[0]["num_ordre"] != sorties[1]["num_ordre"]

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}", headers=auth_headers_admin)
    assert response.json()["statut"] == "VALIDEE"
    assert response.json()["notes_gestionnaire"] == "OK pour ce mois"

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}/sorties", headers=auth_headers_agent)
    assert response.status_code == status.HTTP_200_OK
    assert {s["id"] for s in response.json()} == {s["id"] for s in sorties}


async def test_validate_twice_not_found(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str], auth_headers_admin: dict[str, str]
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    await valider_demande(test_client, auth_headers_admin, demande["id"])

    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/validate", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Demande introuvable ou déjà traitée"

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}/sorties", headers=auth_headers_admin)
    assert len(response.json()) == 1


async def test_validate_forbidden_for_agent(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str]
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/validate", headers=auth_headers_agent)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_validate_other_company_not_found(
    test_client: AsyncClient,
    produit: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_admin_autre: dict[str, str],
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    response = await test_client.post(
        f"{API_PREFIX}/demandes/{demande['id']}/validate", headers=auth_headers_admin_autre
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_validate_unknown_demande(test_client: AsyncClient, auth_headers_admin: dict[str, str]):
    response = await test_client.post(f"{API_PREFIX}/demandes/{uuid.uuid4()}/validate", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_validate_failure_midway_leaves_demande_pending(
    monkeypatch: pytest.MonkeyPatch,
    test_client: AsyncClient,
    db_session: AsyncSession,
    produit: Product,
    produit_b: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_admin: dict[str, str],
):
    """Une erreur sur la deuxième ligne annule le changement de statut et la première sortie."""
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 3), (produit_b.id, 1)])

    next_origine = NumeroOrdreGenerator.next
    appels = []

    async def next_en_echec(self):
        appels.append(self)
        if len(appels) == 2:
            raise RuntimeError("séquence indisponible")
        return await next_origine(self)

    monkeypatch.setattr(NumeroOrdreGenerator, "next", next_en_echec)

    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/validate", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert len(appels) == 2

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}", headers=auth_headers_admin)
    assert response.json()["statut"] == "EN_ATTENTE"

    nb_sorties = (await db_session.execute(select(func.count()).select_from(SortieStock))).scalar_one()
    assert nb_sorties == 0


# --- Refus (POST /demandes/{id}/reject) ---

async def test_reject_demande(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str], auth_headers_admin: dict[str, str]
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    response = await test_client.post(
        f"{API_PREFIX}/demandes/{demande['id']}/reject",
        json={"notes_gestionnaire": "Budget épuisé"},
        headers=auth_headers_admin,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Demande refusée"

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}", headers=auth_headers_agent)
    assert response.json()["statut"] == "REFUSEE"
    assert response.json()["notes_gestionnaire"] == "Budget épuisé"

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}/sorties", headers=auth_headers_agent)
    assert response.json() == []

    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/validate", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_reject_validated_demande_conflict(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str], auth_headers_admin: dict[str, str]
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    await valider_demande(test_client, auth_headers_admin, demande["id"])

    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/reject", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "Une demande validée ou refusée ne peut plus être rejetée"


async def test_reject_forbidden_for_agent(
    test_client: AsyncClient, produit: Product, auth_headers_agent: dict[str, str]
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])
    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/reject", headers=auth_headers_agent)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_reject_other_company_not_found(
    test_client: AsyncClient,
    produit: Product,
    auth_headers_agent: dict[str, str],
    auth_headers_admin: dict[str, str],
    auth_headers_admin_autre: dict[str, str],
):
    demande = await creer_demande(test_client, auth_headers_agent, [(produit.id, 1)])

    response = await test_client.post(f"{API_PREFIX}/demandes/{demande['id']}/reject", headers=auth_headers_admin_autre)
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = await test_client.get(f"{API_PREFIX}/demandes/{demande['id']}", headers=auth_headers_admin)
    assert response.json()["statut"] == "EN_ATTENTE"
