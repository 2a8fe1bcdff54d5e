"""
Unit tests for the account store
"""

import asyncio
import json

import pytest

from stores import AccountStore, QuoteRecord
from utils.exceptions import (
    ValidationError, AlreadyExistsError, NotFoundError, InvalidCredentialsError, ErrorCodes
)
from tests.factories import UserFactory, QuoteFactory


@pytest.mark.unit
class TestRegistration:
    """Test cases for register and authenticate"""

    async def test_register_creates_user(self, account_store, users_snapshot):
        creds = UserFactory.create_credentials()
        user = await account_store.register(**creds)

        assert user.id == 1
        assert user.username == creds["username"]
        assert user.favorites == []
        assert user.password_hash != creds["password"]
        assert user.created_at.tzinfo is not None

        saved = json.loads(users_snapshot.path.read_text())
        assert saved[0]["email"] == creds["email"]

    async def test_ids_are_distinct_and_increasing(self, account_store):
        ids = [(await account_store.register(**UserFactory.create_credentials())).id for _ in range(3)]
        assert ids == [1, 2, 3]

    async def test_ids_continue_after_restore(self, account_store):
        account_store.restore([
            {"id": 7, "username": "old", "email": "old@x.io", "password_hash": "d", "favorites": []},
        ])
        user = await account_store.register(**UserFactory.create_credentials())
        assert user.id == 8

    @pytest.mark.parametrize("field", ["email", "username"])
    async def test_duplicate_identity_rejected(self, account_store, field):
        first = UserFactory.create_credentials()
        await account_store.register(**first)

        second = UserFactory.create_credentials()
        second[field] = first[field]
        with pytest.raises(AlreadyExistsError) as exc_info:
            await account_store.register(**second)
        assert exc_info.value.error_code == ErrorCodes.USER_ALREADY_EXISTS
        assert account_store.size == 1

    async def test_concurrent_duplicate_registration(self, account_store):
        creds = UserFactory.create_credentials()
        results = await asyncio.gather(
            account_store.register(**creds),
            account_store.register(**creds),
            return_exceptions=True
        )
        assert sum(isinstance(r, AlreadyExistsError) for r in results) == 1
        assert account_store.size == 1

    @pytest.mark.parametrize("missing", ["username", "email", "password"])
    async def test_register_requires_fields(self, account_store, missing):
        creds = UserFactory.create_credentials()
        creds[missing] = ""
        with pytest.raises(ValidationError):
            await account_store.register(**creds)

    async def test_authenticate(self, account_store):
        creds = UserFactory.create_credentials()
        user = await account_store.register(**creds)

        assert await account_store.authenticate(creds["email"], creds["password"]) is user

    async def test_authenticate_failures_are_indistinguishable(self, account_store):
        creds = UserFactory.create_credentials()
        await account_store.register(**creds)

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await account_store.authenticate(creds["email"], "not-the-password")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await account_store.authenticate("nobody@example.com", creds["password"])

        assert wrong_password.value.message == unknown_email.value.message
        assert wrong_password.value.error_code == unknown_email.value.error_code

    async def test_unknown_email_still_runs_a_password_check(self, account_store, password_hasher, monkeypatch):
        calls = []
        real_dummy_verify = password_hasher.dummy_verify

        def recording_dummy_verify():
            calls.append(True)
            return real_dummy_verify()

        monkeypatch.setattr(password_hasher, "dummy_verify", recording_dummy_verify)
        with pytest.raises(InvalidCredentialsError):
            await account_store.authenticate("nobody@example.com", "whatever")
        assert calls == [True]

    async def test_authenticate_rejects_malformed_digest(self, account_store):
        account_store.restore([
            {"id": 1, "username": "legacy", "email": "l@x.io", "password": "plaintext"},
        ])
        with pytest.raises(InvalidCredentialsError):
            await account_store.authenticate("l@x.io", "plaintext")


@pytest.mark.unit
class TestFavorites:
    """Test cases for favorites"""

    @pytest.fixture
    async def user(self, account_store):
        return await account_store.register(**UserFactory.create_credentials())

    async def test_add_favorite(self, account_store, user):
        quote = QuoteFactory.create_quote()
        favorites = await account_store.add_favorite(user.id, quote)
        assert [(f.content, f.author) for f in favorites] == [(quote.content, quote.author)]
        assert account_store.get_favorites(user.id) == favorites

    async def test_duplicate_favorite_rejected(self, account_store, user):
        quote = QuoteFactory.create_quote()
        await account_store.add_favorite(user.id, quote)

        with pytest.raises(AlreadyExistsError) as exc_info:
            await account_store.add_favorite(user.id, QuoteRecord(quote.content, quote.author))
        assert exc_info.value.error_code == ErrorCodes.FAVORITE_ALREADY_EXISTS
        assert len(account_store.get_favorites(user.id)) == 1

    async def test_remove_favorite(self, account_store, user):
        keep, drop = QuoteFactory.create_quotes(2)
        await account_store.add_favorite(user.id, keep)
        await account_store.add_favorite(user.id, drop)

        favorites = await account_store.remove_favorite(user.id, drop.content, drop.author)
        assert [f.content for f in favorites] == [keep.content]

    async def test_remove_absent_favorite_is_noop(self, account_store, user):
        quote = QuoteFactory.create_quote()
        await account_store.add_favorite(user.id, quote)

        favorites = await account_store.remove_favorite(user.id, "never saved", "nobody")
        assert len(favorites) == 1

    async def test_unknown_user(self, account_store):
        with pytest.raises(NotFoundError):
            account_store.get_favorites(99)
        with pytest.raises(NotFoundError):
            await account_store.add_favorite(99, QuoteFactory.create_quote())
        with pytest.raises(NotFoundError):
            await account_store.remove_favorite(99, "c", "a")


@pytest.mark.unit
class TestAccountSnapshot:
    """Test cases for persisting accounts"""

    async def test_persist_and_load(self, account_store, users_snapshot, password_hasher):
        creds = UserFactory.create_credentials()
        user = await account_store.register(**creds)
        await account_store.add_favorite(user.id, QuoteFactory.create_quote())

        reloaded = AccountStore(users_snapshot, password_hasher)
        assert await reloaded.load() is True
        assert reloaded.snapshot() == account_store.snapshot()
        assert (await reloaded.authenticate(creds["email"], creds["password"])).id == user.id

    async def test_load_without_file(self, account_store):
        assert await account_store.load() is False
        assert account_store.size == 0

    async def test_load_rejects_non_list(self, users_snapshot, password_hasher):
        users_snapshot.path.parent.mkdir(parents=True)
        users_snapshot.path.write_text(json.dumps({"users": []}))

        store = AccountStore(users_snapshot, password_hasher)
        assert await store.load() is False
        assert store.size == 0

    def test_restore_skips_invalid_entries(self, account_store):
        account_store.restore([
            {"id": 1, "username": "ok", "email": "ok@x.io", "password_hash": "d"},
            {"username": "no-id", "email": "n@x.io"},
            "garbage",
        ])
        assert [u.username for u in account_store.users] == ["ok"]
