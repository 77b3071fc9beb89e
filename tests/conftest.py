import os

# Settings are read at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("RATE_LIMIT", "1000/minute")
os.environ.setdefault("COHORT_PROFILE_DELAY_SECONDS", "0")
os.environ.setdefault("COHORT_IDENTITY_DELAY_SECONDS", "0")
os.environ.setdefault("STATEMENT_DELAY_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient

from marketplace_ops.database.data_access import DataAccessClient
from tests.fakes import FakeSupabase

SUPER_TOKEN = "super-user-token"
PLAIN_TOKEN = "plain-user-token"

CLIENT_ID = "11111111-1111-1111-1111-111111111111"
PROVIDER_ID = "22222222-2222-2222-2222-222222222222"
FALLBACK_ID = "33333333-3333-3333-3333-333333333333"
BARE_CLIENT_ID = "44444444-4444-4444-4444-444444444444"
BARE_PROVIDER_ID = "55555555-5555-5555-5555-555555555555"


def marketplace_tables():
    return {
        "users": [
            {"id": CLIENT_ID, "email": "mario.rossi@example.com", "first_name": "Mario", "last_name": "Rossi",
             "phone": "+39 333 0000001", "user_type": "client", "company_name": "Rossi Spa",
             "created_at": "2024-03-01T10:00:00+00:00"},
            {"id": PROVIDER_ID, "email": "luca.bianchi@example.com", "first_name": "Luca", "last_name": "Bianchi",
             "phone": "", "user_type": "provider", "company_name": "Bianchi Consulting",
             "created_at": "2024-03-02T10:00:00+00:00"},
            {"id": FALLBACK_ID, "email": "info@pippo.example.com", "first_name": "Patrick", "last_name": "Cioni",
             "phone": "", "user_type": "provider", "company_name": "Pippo Srl",
             "created_at": "2024-03-03T10:00:00+00:00"},
            {"id": BARE_CLIENT_ID, "email": "anna.verdi@example.com", "first_name": "Anna", "last_name": None,
             "phone": None, "user_type": "client", "company_name": None,
             "created_at": "2024-03-04T10:00:00+00:00"},
            {"id": BARE_PROVIDER_ID, "email": "paolo.neri@example.com", "first_name": None, "last_name": None,
             "phone": "+39 333 0000005", "user_type": "provider", "company_name": "Neri Sicurezza",
             "created_at": "2024-03-05T10:00:00+00:00"},
        ],
        "client_profiles": [
            {"id": "cp-1", "user_id": CLIENT_ID, "company_name": "Rossi Spa", "legal_country": "Italy"},
        ],
        "provider_profiles": [
            {"id": "pp-1", "user_id": PROVIDER_ID, "business_name": "Bianchi Consulting", "verified": True},
            {"id": "pp-2", "user_id": FALLBACK_ID, "business_name": "Pippo Srl", "verified": False},
        ],
        "services": [
            {"id": "svc-1", "provider_id": PROVIDER_ID, "title": "Ispezione DPI anticaduta",
             "description": "Ispezione DPI di terza categoria presso la sede del cliente",
             "category": "Sicurezza", "subcategory": "DPI", "base_price": 250.0, "active": True},
            {"id": "svc-2", "provider_id": "99999999-0000-0000-0000-000000000001", "title": "Verifica imbracature",
             "description": "Servizio di ispezione dpi per imbracature e cordini",
             "category": "Sicurezza", "subcategory": "DPI", "base_price": 120.0, "active": True},
            {"id": "svc-3", "provider_id": PROVIDER_ID, "title": "Ispezione DPI estintori",
             "description": "Controllo semestrale degli estintori",
             "category": "Antincendio", "subcategory": None, "base_price": 80.0, "active": True},
            {"id": "svc-4", "provider_id": None, "title": "Corso primo soccorso",
             "description": "Formazione con Ispezione DPI finale",
             "category": "Formazione", "subcategory": "Primo soccorso", "base_price": 300.0, "active": False},
            {"id": "svc-5", "provider_id": FALLBACK_ID, "title": "Valutazione rischi",
             "description": "Documento di valutazione dei rischi",
             "category": "Consulenza", "subcategory": "DVR", "base_price": 900.0, "active": True},
        ],
        "archived_services": [],
    }


@pytest.fixture()
def fake_supabase():
    return FakeSupabase(marketplace_tables())


@pytest.fixture()
def db(fake_supabase):
    return DataAccessClient(fake_supabase)


@pytest.fixture()
def app(fake_supabase):
    from marketplace_ops.core import dependencies
    from marketplace_ops.database.supabase_client import get_supabase
    from marketplace_ops.main import app as app_instance
    from marketplace_ops.modules.auth.service import clear_auth_cache

    fake_supabase.auth.admin.add_identity("admin-id", "admin@example.com", app_metadata={"type": "super_user"})
    fake_supabase.auth.tokens[SUPER_TOKEN] = fake_supabase.auth.admin.identities["admin-id"]
    fake_supabase.auth.admin.add_identity("plain-id", "plain@example.com")
    fake_supabase.auth.tokens[PLAIN_TOKEN] = fake_supabase.auth.admin.identities["plain-id"]

    app_instance.dependency_overrides[get_supabase] = lambda: fake_supabase
    app_instance.dependency_overrides[dependencies.get_data_access] = lambda: DataAccessClient(fake_supabase)
    app_instance.dependency_overrides[dependencies.get_admin_data_access] = lambda: DataAccessClient(fake_supabase)
    clear_auth_cache()
    yield app_instance
    app_instance.dependency_overrides.clear()
    clear_auth_cache()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {SUPER_TOKEN}"}
