from __future__ import annotations

import logging
import os

import orjson

from wishcraft.models import Wishlist, WishlistItem
from wishcraft.persistence import WishlistRepository


def _sample() -> list[Wishlist]:
    return [
        Wishlist(
            name="Kitchen",
            items=(
                WishlistItem(name="Knife", link="https://example.com/knife", notes="8 inch"),
                WishlistItem(name="Pan"),
            ),
            cover_image_data=b"\x00\x01\x02",
            cover_image_offset_x=12.5,
        ),
        Wishlist(name="Books"),
    ]


def test_load_missing_file_returns_empty(repository) -> None:
    assert not repository.path.exists()
    assert repository.load() == []


def test_save_then_load_preserves_order_and_fields(repository) -> None:
    wishlists = _sample()
    assert repository.save(wishlists) is True

    loaded = repository.load()
    assert loaded == wishlists
    assert [item.name for item in loaded[0].items] == ["Knife", "Pan"]


def test_save_load_save_is_byte_identical(repository) -> None:
    repository.save(_sample())
    first = repository.path.read_bytes()

    repository.save(repository.load())
    assert repository.path.read_bytes() == first


def test_durable_file_is_a_json_array_of_documents(repository) -> None:
    repository.save(_sample())
    data = orjson.loads(repository.path.read_bytes())
    assert isinstance(data, list)
    assert data[0]["name"] == "Kitchen"
    assert data[0]["coverImageData"] == "AAEC"
    assert "coverImageData" not in data[1]


def test_truncated_file_loads_as_empty(repository, caplog) -> None:
    repository.save(_sample())
    raw = repository.path.read_bytes()
    repository.path.write_bytes(raw[: len(raw) // 2])

    with caplog.at_level(logging.WARNING, logger="wishcraft.persistence"):
        assert repository.load() == []
    assert "Discarding unreadable wishlist file" in caplog.text


def test_non_json_file_loads_as_empty(repository) -> None:
    repository.path.write_text("not json at all", encoding="utf-8")
    assert repository.load() == []


def test_wrong_shape_loads_as_empty(repository) -> None:
    repository.path.write_bytes(orjson.dumps({"wishlists": []}))
    assert repository.load() == []


def test_save_leaves_no_temporary_files(repository) -> None:
    repository.save(_sample())
    repository.save([])
    assert sorted(os.listdir(repository.path.parent)) == ["wishlists.json"]
    assert repository.load() == []


def test_failed_replace_keeps_previous_file(repository, monkeypatch, caplog) -> None:
    repository.save(_sample())
    before = repository.path.read_bytes()

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(os, "replace", broken_replace)
    with caplog.at_level(logging.ERROR, logger="wishcraft.persistence"):
        assert repository.save([Wishlist(name="Lost")]) is False

    assert repository.path.read_bytes() == before
    assert sorted(os.listdir(repository.path.parent)) == ["wishlists.json"]
    assert "Error saving wishlists" in caplog.text


def test_non_finite_offset_is_not_written(repository, caplog) -> None:
    saved = _sample()
    repository.save(saved)
    before = repository.path.read_bytes()

    # model_copy skips validation, so this record slips past the model.
    broken = saved[1].model_copy(update={"cover_image_offset_y": float("nan")})
    with caplog.at_level(logging.ERROR, logger="wishcraft.persistence"):
        assert repository.save([saved[0], broken]) is False

    assert repository.path.read_bytes() == before
    assert repository.load() == saved
    assert "Could not serialize wishlists" in caplog.text


def test_unusable_storage_directory_is_not_fatal(tmp_path, caplog) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="wishcraft.persistence"):
        repository = WishlistRepository(blocker / "wishlists.json")
    assert "Could not create storage directory" in caplog.text

    assert repository.load() == []
    assert repository.save(_sample()) is False
