"""Tests for the SQLAlchemy credential store against in-memory sqlite."""

import pytest
from sqlalchemy.pool import StaticPool

from src.infrastructure.credentials.sql_credential_store import CredentialStoreError, SqlCredentialStore


@pytest.fixture
def store() -> SqlCredentialStore:
    store = SqlCredentialStore.from_url(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store.create_schema()
    return store


def test_finds_active_account(store):
    account_id = store.add_account("ann", "s3cret", first_name="Ann", last_name="Lee")
    account = store.find_active_account("ann", "s3cret")
    assert account.id == account_id
    assert account.full_name == "Ann Lee"
    assert account.active is True


def test_wrong_password_or_inactive_account(store):
    store.add_account("ann", "s3cret")
    store.add_account("old", "pw", active=False)
    assert store.find_active_account("ann", "S3CRET") is None
    assert store.find_active_account("old", "pw") is None
    assert store.find_active_account("nobody", "pw") is None


def test_record_login_stamps_timestamp(store):
    account_id = store.add_account("ann", "s3cret")
    assert store.last_login(account_id) is None
    store.record_login(account_id)
    assert store.last_login(account_id) is not None


def test_database_errors_are_translated(tmp_path):
    store = SqlCredentialStore.from_url(f"sqlite:///{tmp_path}/missing-schema.db")
    with pytest.raises(CredentialStoreError):
        store.find_active_account("ann", "s3cret")
