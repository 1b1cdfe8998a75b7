import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from inroom.app.domain import ValidationError
from inroom.app.menu.seed import SAMPLE_MENU


@pytest.mark.anyio
async def test_seed_default_populates_once(menu_repo):
    items = await menu_repo.list_items("RestoVersion")
    assert [i.item_key for i in items] == [m["item_key"] for m in SAMPLE_MENU]
    assert await menu_repo.seed_default("RestoVersion") is False
    assert len(await menu_repo.list_items("RestoVersion")) == len(SAMPLE_MENU)


@pytest.mark.anyio
async def test_get_item(menu_repo):
    naan = await menu_repo.get_item("RestoVersion", "naan")
    assert naan.name == "Naan"
    assert naan.price == 60
    assert naan.version == "RestoVersion"
    assert await menu_repo.get_item("RestoVersion", "samosa") is None
    assert await menu_repo.get_item("Winter", "naan") is None


@pytest.mark.anyio
async def test_publish_new_version(menu_repo):
    published = await menu_repo.publish_version(
        "Winter",
        [
            {"item_key": "naan", "name": "Naan", "price": 70, "category": "Breads"},
            {"item_key": "soup", "name": "Tomato Soup", "price": 150},
        ],
    )
    assert [i.item_key for i in published] == ["naan", "soup"]
    assert await menu_repo.list_versions() == ["RestoVersion", "Winter"]
    assert (await menu_repo.get_item("RestoVersion", "naan")).price == 60
    assert (await menu_repo.get_item("Winter", "naan")).price == 70


@pytest.mark.anyio
async def test_existing_version_is_not_modified(menu_repo):
    with pytest.raises(ValidationError):
        await menu_repo.publish_version(
            "RestoVersion", [{"item_key": "naan", "name": "Naan", "price": 1}]
        )
    assert (await menu_repo.get_item("RestoVersion", "naan")).price == 60


@pytest.mark.anyio
async def test_publish_race_on_unique_constraint_is_validation_error(
    menu_repo, monkeypatch
):
    # Another publisher committed between the existence check and the insert.
    async def nothing_yet(self, statement, *args, **kwargs):
        return 0

    monkeypatch.setattr(AsyncSession, "scalar", nothing_yet)
    with pytest.raises(ValidationError) as exc:
        await menu_repo.publish_version(
            "RestoVersion", [{"item_key": "naan", "name": "Naan", "price": 1}]
        )
    assert "already exists" in exc.value.message
    monkeypatch.undo()
    assert (await menu_repo.get_item("RestoVersion", "naan")).price == 60


@pytest.mark.anyio
@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"item_key": "", "name": "X", "price": 1}],
        [{"item_key": "x", "name": "", "price": 1}],
        [{"item_key": "x", "name": "X", "price": -1}],
        [
            {"item_key": "x", "name": "X", "price": 1},
            {"item_key": "x", "name": "Y", "price": 2},
        ],
    ],
)
async def test_publish_rejects_bad_upload(menu_repo, items):
    with pytest.raises(ValidationError):
        await menu_repo.publish_version("Broken", items)
    assert await menu_repo.list_items("Broken") == []
