import os
import threading
from typing import Any, Dict, Generator, List, Optional

# Pas de Redis pendant les tests: le lifespan lit cette variable au démarrage de l'app
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from curadoria.app import app as fastapi_app

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

NY_PDF = "https://cdn.example.test/city-guide/new-york.pdf"
SP_PDF = "https://cdn.example.test/city-guide/sao-paulo.pdf"
RIO_PDF = "https://cdn.example.test/gastronomia/rio.pdf"

DEFAULT_MATERIALS = [
    {"category": "City Guide", "city_label": "New York - USA", "pdf_url": NY_PDF, "is_active": True},
    {"category": "City Guide", "city_label": "São Paulo", "pdf_url": SP_PDF, "is_active": True},
    {"category": "Gastronomia", "city_label": "Rio de Janeiro", "pdf_url": RIO_PDF, "is_active": True},
    {"category": "City Guide", "city_label": "Lisboa", "pdf_url": "https://cdn.example.test/old/lisboa.pdf", "is_active": False},
]

# Tokens de test -> user_id (tout autre token est refusé comme un token expiré)
TOKENS = {"tok-u1": "u1", "tok-u2": "u2", "tok-noinvoice": "u3"}

@pytest.fixture
def auth():
    """En-têtes Authorization pour un token de TOKENS (u1 par défaut)."""
    def _auth(token: str = "tok-u1") -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}
    return _auth

class FakeCatalog:
    """Table curadoria_materials en mémoire; reproduit ILIKE (égalité ou %sous-chaîne%), l'ordre et la limite."""

    def __init__(self, rows: List[Dict[str, Any]]):
        self.rows = [dict(r) for r in rows]
        self.queries: List[str] = []
        self.fail = False

    def fetch_active_by_category(self, pattern: str, *, limit: int) -> List[Dict[str, Any]]:
        from curadoria.catalog.repository import CatalogError

        self.queries.append(pattern)
        if self.fail:
            raise CatalogError("catalog down")
        substring = pattern.startswith("%") and pattern.endswith("%") and len(pattern) >= 2
        needle = pattern[1:-1] if substring else pattern
        needle = needle.replace("\\%", "%").replace("\\_", "_").replace("\\\\", "\\").lower()

        def _match(row):
            value = (row.get("category") or "").lower()
            return needle in value if substring else value == needle

        found = [dict(r) for r in self.rows if r.get("is_active") and _match(r)]
        found.sort(key=lambda r: r.get("pdf_url") or "")
        return found[:limit]

class FakeLedger:
    """Table purchase en mémoire avec l'unicité (user_id, category, city) sous verrou, comme l'index unique."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.lock = threading.Lock()
        self.fail_on_insert = False
        self.insert_attempts = 0

    def find_purchase(self, user_id: str, category: str, city: str) -> Optional[Dict[str, Any]]:
        with self.lock:
            for r in self.rows:
                if (r["user_id"], r["category"], r["city"]) == (user_id, category, city):
                    return dict(r)
        return None

    def insert_purchase(self, *, user_id: str, category: str, city: str, pdf_url: str, provider_reference: str):
        from curadoria.entitlements.repository import PurchaseStoreError

        with self.lock:
            self.insert_attempts += 1
            if self.fail_on_insert:
                raise PurchaseStoreError("insert failed")
            for r in self.rows:
                if (r["user_id"], r["category"], r["city"]) == (user_id, category, city):
                    return None
            row = {
                "user_id": user_id,
                "category": category,
                "city": city,
                "pdf_url": pdf_url,
                "provider_reference": provider_reference,
                "created_at": f"2025-01-01T00:00:{len(self.rows):02d}Z",
            }
            self.rows.append(row)
            return dict(row)

    def list_user_purchases(self, user_id: str, limit: int = 200) -> List[Dict[str, Any]]:
        with self.lock:
            mine = [dict(r) for r in self.rows if r["user_id"] == user_id]
        mine.sort(key=lambda r: r["created_at"], reverse=True)
        return mine[:limit]

    def rows_for(self, user_id: str) -> List[Dict[str, Any]]:
        return [r for r in self.rows if r["user_id"] == user_id]

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Aucun accès réseau à Supabase pendant les tests
@pytest.fixture(autouse=True)
def mock_supabase_clients(monkeypatch):
    monkeypatch.setattr("curadoria.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("curadoria.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture
def catalog(monkeypatch) -> FakeCatalog:
    fake = FakeCatalog(DEFAULT_MATERIALS)
    monkeypatch.setattr("curadoria.catalog.repository.fetch_active_by_category", fake.fetch_active_by_category)
    return fake

@pytest.fixture
def ledger(monkeypatch) -> FakeLedger:
    fake = FakeLedger()
    monkeypatch.setattr("curadoria.entitlements.repository.find_purchase", fake.find_purchase)
    monkeypatch.setattr("curadoria.entitlements.repository.insert_purchase", fake.insert_purchase)
    monkeypatch.setattr("curadoria.entitlements.repository.list_user_purchases", fake.list_user_purchases)
    return fake

@pytest.fixture
def identities(monkeypatch) -> Dict[str, str]:
    """Supabase Auth simulé: TOKENS résolus, u1 et u2 ont un profil de facturation, u3 non."""
    tokens = dict(TOKENS)
    profiles = {"u1", "u2"}
    monkeypatch.setattr("curadoria.infra.identity.resolve_user_id", lambda token: tokens.get(token) if token else None)
    monkeypatch.setattr("curadoria.invoices.repository.has_invoice_profile", lambda user_id: user_id in profiles)
    return tokens

@pytest.fixture
def stripe_config(monkeypatch):
    monkeypatch.setattr("curadoria.config.STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr("curadoria.config.STRIPE_WEBHOOK_SECRET", "whsec_dummy")
    monkeypatch.setattr("curadoria.config.STRIPE_PRICE_ID_CITY_GUIDE", "price_city_guide")
    monkeypatch.setattr("curadoria.config.STRIPE_PRICE_ID_DEFAULT", "price_default")

@pytest.fixture
def mp_config(monkeypatch):
    monkeypatch.setattr("curadoria.config.IS_PRODUCTION", False)
    monkeypatch.setattr("curadoria.config.APP_ENV", "development")
    monkeypatch.setattr("curadoria.config.MP_ACCESS_TOKEN_TEST", "TEST-token")
    monkeypatch.setattr("curadoria.config.MP_ACCESS_TOKEN_PROD", "")
    monkeypatch.setattr("curadoria.config.MP_WEBHOOK_SECRET", "")

@pytest.fixture
def stripe_sessions(monkeypatch) -> Dict[str, Dict[str, Any]]:
    """Sessions Checkout simulées, indexées par id (PaymentNotFound si absente)."""
    from curadoria.payments.errors import PaymentNotFound

    sessions: Dict[str, Dict[str, Any]] = {}

    def _get_session(session_id):
        if session_id not in sessions:
            raise PaymentNotFound("Session Stripe introuvable", provider="stripe", reference=session_id)
        return sessions[session_id]

    monkeypatch.setattr("curadoria.payments.stripe_client.get_session", _get_session)
    return sessions

@pytest.fixture
def mp_payments(monkeypatch) -> Dict[str, Dict[str, Any]]:
    """Paiements Mercado Pago simulés, indexés par id."""
    from curadoria.payments.errors import PaymentNotFound

    payments: Dict[str, Dict[str, Any]] = {}

    def _get_payment(payment_id):
        if str(payment_id) not in payments:
            raise PaymentNotFound("Paiement Mercado Pago introuvable", provider="mercadopago", reference=payment_id)
        return payments[str(payment_id)]

    monkeypatch.setattr("curadoria.payments.mercadopago_client.get_payment", _get_payment)
    return payments
