import pytest

from marketplace_ops.core.exceptions import NotFound
from marketplace_ops.modules.inspection.service import InspectionService
from marketplace_ops.modules.users.service import UserService
from tests.conftest import BARE_PROVIDER_ID, CLIENT_ID


@pytest.fixture()
def service(db):
    return InspectionService(db)


def test_table_counts(service):
    counts = service.table_counts().counts
    assert counts == {
        "users": 5,
        "client_profiles": 1,
        "provider_profiles": 2,
        "services": 5,
        "archived_services": 0,
    }


def test_user_overview_includes_profile(service):
    overview = service.user_overview("mario.rossi@example.com")
    assert overview.user.id == CLIENT_ID
    assert overview.profile_table == "client_profiles"
    assert overview.profile["id"] == "cp-1"


def test_user_overview_without_profile(service):
    overview = service.user_overview("paolo.neri@example.com")
    assert overview.user.id == BARE_PROVIDER_ID
    assert overview.profile_table == "provider_profiles"
    assert overview.profile is None


def test_user_overview_unknown_email(service):
    with pytest.raises(NotFound):
        service.user_overview("ghost@example.com")


def test_list_identities(service, fake_supabase):
    fake_supabase.auth.admin.add_identity("id-1", "a@example.com", user_metadata={"user_type": "client"})
    fake_supabase.auth.admin.add_identity("id-2", "b@example.com")

    found = service.list_identities(per_page=1)

    assert [i.email for i in found] == ["a@example.com"]
    assert found[0].user_metadata == {"user_type": "client"}


class TestUserService:
    def test_list_users_newest_first(self, db):
        found = UserService(db).list_users(user_type="client")
        assert [u.email for u in found] == ["anna.verdi@example.com", "mario.rossi@example.com"]

    def test_get_user_by_id(self, db):
        user = UserService(db).get_user_by_id(CLIENT_ID)
        assert user.full_name == "Mario Rossi"

    def test_get_user_by_id_missing(self, db):
        with pytest.raises(NotFound):
            UserService(db).get_user_by_id("missing")
