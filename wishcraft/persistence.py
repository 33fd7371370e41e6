"""Durable storage for the wishlist collection."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Sequence

import orjson
from pydantic import TypeAdapter, ValidationError

from .models import Wishlist

LOGGER = logging.getLogger(__name__)

_WISHLISTS = TypeAdapter(list[Wishlist])


class WishlistRepository:
    """Stores every wishlist in a single JSON file, replaced atomically on save."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            # Not fatal: load finds nothing and every save reports failure.
            LOGGER.error("Could not create storage directory %s: %s", self.path.parent, exc)

    def load(self) -> list[Wishlist]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            LOGGER.error("Could not read %s: %s", self.path, exc)
            return []
        try:
            return _WISHLISTS.validate_python(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            # Starting fresh beats refusing to start; the next save overwrites the file.
            LOGGER.warning("Discarding unreadable wishlist file %s: %s", self.path, exc)
            return []

    def save(self, wishlists: Sequence[Wishlist]) -> bool:
        try:
            documents = [wishlist.to_document() for wishlist in wishlists]
            # Records built with model_copy skip validation; anything load would reject stays off disk.
            _WISHLISTS.validate_python(documents)
            payload = orjson.dumps(documents, option=orjson.OPT_INDENT_2)
        except (TypeError, ValueError, orjson.JSONEncodeError) as exc:
            LOGGER.error("Could not serialize wishlists: %s", exc)
            return False

        try:
            self._replace(payload)
        except OSError as exc:
            LOGGER.error("Error saving wishlists to %s: %s", self.path, exc)
            return False
        return True

    def _replace(self, payload: bytes) -> None:
        handle, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(handle, "wb") as tmp_file:
                tmp_file.write(payload)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
