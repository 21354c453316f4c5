import pytest

from app.core.errors import NotFound, StoreUnavailable
from app.services import quotations_service as qs
from app.services.quotations_service import delete_quotation


@pytest.mark.asyncio
async def test_delete_removes_quotation_versions_and_items(fake_store):
    fake_store.add_quotation("q-1", versions=3, items_per_version=4)
    fake_store.add_quotation("q-2", versions=2, items_per_version=1)
    before = fake_store.row_count()

    await delete_quotation(fake_store, "q-1")

    # 1 quotation + 3 versions + 12 items
    assert before - fake_store.row_count() == 16
    assert "q-1" not in fake_store.tables["quotations"]
    assert not [v for v in fake_store.tables["quotation_versions"] if v.startswith("q-1")]
    assert not [i for i in fake_store.tables["quotation_items"] if i.startswith("q-1")]


@pytest.mark.asyncio
async def test_delete_leaves_other_quotations_untouched(fake_store):
    fake_store.add_quotation("q-1", versions=2, items_per_version=2)
    fake_store.add_quotation("q-2", versions=2, items_per_version=3)

    await delete_quotation(fake_store, "q-1")

    assert set(fake_store.tables["quotations"]) == {"q-2"}
    assert set(fake_store.tables["quotation_versions"]) == {"q-2-v0", "q-2-v1"}
    assert len(fake_store.tables["quotation_items"]) == 6


@pytest.mark.asyncio
async def test_children_are_deleted_before_parents_in_one_transaction(fake_store):
    fake_store.add_quotation("q-1", versions=1, items_per_version=1)

    await delete_quotation(fake_store, "q-1")

    assert fake_store.transactions == 1
    assert fake_store.statements == [
        qs.LOCK_QUOTATION,
        qs.SELECT_VERSION_IDS,
        qs.DELETE_VERSION_ITEMS,
        qs.DELETE_VERSIONS,
        qs.DELETE_QUOTATION,
    ]


@pytest.mark.asyncio
async def test_quotation_without_versions_skips_child_deletes(fake_store):
    fake_store.add_quotation("q-1")

    await delete_quotation(fake_store, "q-1")

    assert fake_store.tables["quotations"] == {}
    assert qs.DELETE_VERSION_ITEMS not in fake_store.statements
    assert qs.DELETE_VERSIONS not in fake_store.statements


@pytest.mark.asyncio
async def test_unknown_quotation_raises_not_found(fake_store):
    fake_store.add_quotation("q-1", versions=1, items_per_version=1)
    before = fake_store.row_count()

    with pytest.raises(NotFound):
        await delete_quotation(fake_store, "missing")

    assert fake_store.row_count() == before
    assert qs.DELETE_QUOTATION not in fake_store.statements


@pytest.mark.asyncio
async def test_failure_between_item_and_version_delete_rolls_everything_back(fake_store):
    fake_store.add_quotation("q-1", versions=2, items_per_version=3)
    original = {name: dict(rows) for name, rows in fake_store.tables.items()}
    fake_store.fail_on.add(qs.DELETE_VERSIONS)

    with pytest.raises(StoreUnavailable):
        await delete_quotation(fake_store, "q-1")

    # the item delete ran before the failure and was undone
    assert qs.DELETE_VERSION_ITEMS in fake_store.statements
    assert fake_store.rollbacks == 1
    assert fake_store.tables == original


@pytest.mark.asyncio
async def test_deleted_ids_are_no_longer_found(fake_store):
    fake_store.add_quotation("q-1", versions=1, items_per_version=2)

    await delete_quotation(fake_store, "q-1")

    with pytest.raises(NotFound):
        await delete_quotation(fake_store, "q-1")
    assert "q-1-v0" not in fake_store.tables["quotation_versions"]
    assert "q-1-v0-i0" not in fake_store.tables["quotation_items"]
    assert "q-1-v0-i1" not in fake_store.tables["quotation_items"]
