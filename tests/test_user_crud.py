from company_service.core.security import verify_password
from company_service.crud import user_crud
from company_service.crud.user_crud import ensure_default_user, get_user_by_username
from company_service.models.user import User


def test_default_user_is_created_once(db):
    assert ensure_default_user(db, "root", "toor") is True
    assert ensure_default_user(db, "root", "changed") is False

    assert db.query(User).filter(User.username == "root").count() == 1
    stored = get_user_by_username(db, "root")
    assert stored.password != "toor"
    # the second call does not overwrite the password
    assert verify_password("toor", stored.password)


def test_default_user_keeps_existing_accounts(db, admin_user):
    assert ensure_default_user(db, admin_user.username, "whatever") is False
    assert db.query(User).count() == 1


def test_default_user_race_counts_as_present(db, monkeypatch):
    assert ensure_default_user(db, "root", "toor") is True
    # another worker inserted between our lookup and our insert
    monkeypatch.setattr(user_crud, "get_user_by_username", lambda db, username: None)

    assert ensure_default_user(db, "root", "toor") is False
    assert db.query(User).filter(User.username == "root").count() == 1
