"""
Unit tests for the quote store
"""

import json

import pytest

from stores import QuoteStore, QuoteRecord, SnapshotFile, seed_quotes
from utils.exceptions import ValidationError
from tests.factories import QuoteFactory


def assert_index_consistent(store: QuoteStore):
    """bucket ⊆ all, records carry their bucket label, labelled records are indexed"""
    all_quotes = store.all_quotes
    for label in store.list_categories():
        for record in store.get_by_category(label):
            assert any(record is q for q in all_quotes)
            assert record.has_category(label)
    for record in all_quotes:
        for label in record.categories:
            assert any(q.matches(record) for q in store.get_by_category(label))


@pytest.mark.unit
class TestQuoteStoreReads:
    """Test cases for reads on a freshly seeded store"""

    def test_initial_state_is_seed(self, quote_store):
        assert quote_store.size == 15
        assert_index_consistent(quote_store)

    def test_get_random_returns_member(self, quote_store):
        for _ in range(20):
            quote = quote_store.get_random()
            assert any(quote is q for q in quote_store.all_quotes)

    def test_get_by_category_is_case_insensitive(self, quote_store):
        wisdom = quote_store.get_by_category("WISDOM")
        assert wisdom
        assert all(q.has_category("wisdom") for q in wisdom)

    def test_unknown_category_is_empty(self, quote_store):
        assert quote_store.get_by_category("astronomy") == []

    def test_list_categories_sorted(self, quote_store):
        categories = quote_store.list_categories()
        assert categories == sorted(categories)
        assert "humor" in categories

    def test_empty_seed_rejected(self):
        with pytest.raises(ValueError):
            QuoteStore(seed=[])


@pytest.mark.unit
class TestQuoteStoreMerge:
    """Test cases for merging observed quotes"""

    def test_merge_adds_new_quotes(self, quote_store):
        quotes = QuoteFactory.create_quotes(3, categories=["science"])
        assert quote_store.merge(quotes) == 3
        assert quote_store.size == 18
        assert len(quote_store.get_by_category("science")) == 3
        assert_index_consistent(quote_store)

    def test_merge_is_idempotent(self, quote_store):
        quotes = QuoteFactory.create_quotes(4)
        quote_store.merge(quotes, label="history")
        before = quote_store.snapshot()

        assert quote_store.merge(quotes, label="history") == 0
        assert quote_store.snapshot() == before

    def test_merge_existing_quote_gains_label(self, quote_store):
        wilde = QuoteRecord("Be yourself; everyone else is already taken.", "Oscar Wilde")
        assert quote_store.merge([wilde], label="famous quotes") == 0
        assert quote_store.size == 15

        bucket = quote_store.get_by_category("famous quotes")
        assert len(bucket) == 1
        assert bucket[0].categories == ["wisdom", "inspiration", "famous quotes"]
        assert_index_consistent(quote_store)

    def test_merge_label_is_attached(self, quote_store):
        quote = QuoteFactory.create_quote(categories=[])
        quote_store.merge([quote], label="Friendship")
        stored = quote_store.get_by_category("friendship")
        assert [q.content for q in stored] == [quote.content]
        assert stored[0].has_category("friendship")

    def test_merge_copies_incoming_records(self, quote_store):
        quote = QuoteFactory.create_quote(categories=["life"])
        quote_store.merge([quote])
        quote.categories.append("mutated")
        assert "mutated" not in quote_store.list_categories()


@pytest.mark.unit
class TestQuoteStoreUserQuotes:
    """Test cases for user-submitted quotes"""

    async def test_add_user_quote(self, quote_store, quote_snapshot):
        record = await quote_store.add_user_quote("New one", "Me", ["Life", "custom"], added_by="alice")

        assert record.added_by == "alice"
        assert record.categories == ["life", "custom"]
        assert quote_store.all_quotes[-1] is record
        assert any(q is record for q in quote_store.get_by_category("custom"))
        assert any(q is record for q in quote_store.get_by_category("life"))
        assert quote_snapshot.exists()

    async def test_add_user_quote_bypasses_dedupe(self, quote_store):
        await quote_store.add_user_quote("Be yourself; everyone else is already taken.", "Oscar Wilde",
                                         ["wisdom"], added_by="alice")
        assert quote_store.size == 16
        authors = [q.added_by for q in quote_store.get_by_category("wisdom")
                   if q.author == "Oscar Wilde"]
        assert authors == [None, "alice"]

    @pytest.mark.parametrize("content,author", [("", "Me"), ("Words", "")])
    async def test_add_user_quote_requires_fields(self, quote_store, content, author):
        with pytest.raises(ValidationError):
            await quote_store.add_user_quote(content, author)
        assert quote_store.size == 15

    async def test_add_user_quote_survives_write_failure(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")
        store = QuoteStore(SnapshotFile(blocker / "quoteCache.json"))

        record = await store.add_user_quote("Still here", "Me", ["life"])
        assert store.all_quotes[-1] is record


@pytest.mark.unit
class TestQuoteStoreSnapshot:
    """Test cases for snapshot, restore and load"""

    async def test_snapshot_restore_round_trip(self, quote_store):
        quote_store.merge(QuoteFactory.create_quotes(5), label="history")
        await quote_store.add_user_quote("Mine", "Me", ["wisdom"], added_by="alice")
        state = quote_store.snapshot()

        restored = QuoteStore()
        restored.restore(json.loads(json.dumps(state)))

        assert restored.snapshot() == state
        assert_index_consistent(restored)

    def test_restore_preserves_identity(self, quote_store):
        restored = QuoteStore()
        restored.restore(quote_store.snapshot())
        bucket = restored.get_by_category("wisdom")
        assert all(any(r is q for q in restored.all_quotes) for r in bucket)

    def test_restore_repairs_inconsistent_snapshot(self):
        state = {
            "all": [{"content": "A", "author": "X", "categories": ["life"]}],
            "byCategory": {
                "Humor": [{"content": "A", "author": "X", "categories": ["life"]},
                          {"content": "B", "author": "Y", "categories": []}],
            },
        }
        store = QuoteStore()
        store.restore(state)

        assert [q.content for q in store.all_quotes] == ["A", "B"]
        assert [q.content for q in store.get_by_category("humor")] == ["A", "B"]
        assert [q.content for q in store.get_by_category("life")] == ["A"]
        assert store.all_quotes[0].categories == ["life", "humor"]
        assert_index_consistent(store)

    def test_restore_rejects_non_object(self, quote_store):
        with pytest.raises(ValidationError):
            quote_store.restore(["not", "an", "object"])

    async def test_persist_then_load(self, quote_store, quote_snapshot):
        quote_store.merge(QuoteFactory.create_quotes(2, categories=["science"]))
        assert await quote_store.persist() is True

        reloaded = QuoteStore(quote_snapshot)
        assert await reloaded.load() is True
        assert reloaded.snapshot() == quote_store.snapshot()

    async def test_load_without_snapshot_keeps_seed(self, quote_store):
        assert await quote_store.load() is False
        assert quote_store.size == 15

    async def test_load_merges_seed_back(self, quote_snapshot):
        quote_snapshot.path.parent.mkdir(parents=True)
        quote_snapshot.path.write_text(json.dumps({"all": [], "byCategory": {}}))

        store = QuoteStore(quote_snapshot)
        await store.load()
        assert store.size == len(seed_quotes())
        assert_index_consistent(store)

    async def test_load_ignores_corrupt_snapshot(self, quote_snapshot):
        quote_snapshot.path.parent.mkdir(parents=True)
        quote_snapshot.path.write_text("{ not json")

        store = QuoteStore(quote_snapshot)
        assert await store.load() is False
        assert store.size == 15

    async def test_persist_without_file(self):
        assert await QuoteStore().persist() is False


@pytest.mark.unit
def test_seeded_wisdom_scenario(quote_store):
    wisdom = quote_store.get_by_category("wisdom")
    assert any(
        q.content == "Be yourself; everyone else is already taken."
        and q.author == "Oscar Wilde"
        and q.categories == ["wisdom", "inspiration"]
        for q in wisdom
    )
    assert quote_store.get_by_category("nonexistent") == []
