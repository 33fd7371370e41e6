"""In-memory authoritative wishlist collection."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator
from uuid import UUID

from .models import (
    DEFAULT_WISHLIST_NAME,
    FIRST_WISHLIST_NAME,
    Collection,
    Wishlist,
    WishlistItem,
    WishlistSummary,
)
from .persistence import WishlistRepository

LOGGER = logging.getLogger(__name__)

Observer = Callable[[Collection], None]


class WishlistStore:
    """Owns the wishlist collection and persists it after every change.

    All mutating methods are meant to run on a single owning thread (the UI
    thread, or the dispatcher loop in the headless host); each one still holds
    the write lock from reading the current state to saving the new one, so a
    stray call from another thread cannot lose an update. The current state is
    kept as one immutable :class:`Collection`; each mutation swaps in a new one,
    so :meth:`snapshot` can be called from any thread without blocking the
    writer. Operations that name an unknown wishlist or item are silent no-ops.
    """

    def __init__(self, repository: WishlistRepository, wishlists: Iterable[Wishlist] = ()) -> None:
        self.repository = repository
        wishlists = tuple(wishlists)
        self._state = Collection(
            wishlists=wishlists,
            selected_id=wishlists[0].id if wishlists else None,
        )
        self._write_lock = threading.Lock()
        self._observers: list[Observer] = []
        self.last_save_ok = True

    @classmethod
    def open(cls, repository: WishlistRepository) -> WishlistStore:
        """Load the durable collection, synthesizing a first wishlist when empty."""
        store = cls(repository, repository.load())
        if not store.snapshot().wishlists:
            LOGGER.info("No saved wishlists found in %s; creating a default one", repository.path)
            store.add_wishlist(FIRST_WISHLIST_NAME)
        return store

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def snapshot(self) -> Collection:
        return self._state

    @property
    def wishlists(self) -> tuple[Wishlist, ...]:
        return self._state.wishlists

    @property
    def selected_id(self) -> UUID | None:
        return self._state.selected_id

    @property
    def selected_wishlist(self) -> Wishlist | None:
        return self._state.selected

    def get_wishlist(self, wishlist_id: UUID) -> Wishlist | None:
        return self._state.get(wishlist_id)

    def list_wishlists(self) -> list[WishlistSummary]:
        """Return `(id, name)` pairs only; item bodies and cover images stay private."""
        return self._state.summaries()

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def add_wishlist(self, name: str | None = None) -> Wishlist:
        wishlist = Wishlist(name=name or DEFAULT_WISHLIST_NAME)
        with self._mutation():
            state = self._state
            self._commit(
                Collection(wishlists=state.wishlists + (wishlist,), selected_id=wishlist.id)
            )
        return wishlist

    def select_wishlist(self, wishlist_id: UUID | None) -> bool:
        """Change the selection. Selection is session state and is not saved."""
        with self._mutation():
            state = self._state
            if wishlist_id is not None and state.index_of(wishlist_id) is None:
                return False
            self._state = Collection(wishlists=state.wishlists, selected_id=wishlist_id)
        return True

    def rename_wishlist(self, wishlist_id: UUID, new_name: str) -> bool:
        with self._mutation():
            wishlist = self._state.get(wishlist_id)
            if wishlist is None:
                return self._missing("wishlist", wishlist_id)
            return self._replace_wishlist(wishlist.model_copy(update={"name": new_name}))

    def delete_wishlist(self, wishlist_id: UUID) -> bool:
        with self._mutation():
            state = self._state
            if state.index_of(wishlist_id) is None:
                return self._missing("wishlist", wishlist_id)
            remaining = tuple(w for w in state.wishlists if w.id != wishlist_id)
            selected_id = state.selected_id
            if selected_id == wishlist_id:
                selected_id = remaining[0].id if remaining else None
            self._commit(Collection(wishlists=remaining, selected_id=selected_id))
            return True

    def update_wishlist(self, wishlist: Wishlist) -> bool:
        """Replace a whole record, e.g. after a cover image or offset change.

        The record is revalidated first, so values built with ``model_copy``
        (which skips validation) cannot reach the durable file.
        """
        wishlist = Wishlist.model_validate(dict(wishlist))
        with self._mutation():
            if self._state.index_of(wishlist.id) is None:
                return self._missing("wishlist", wishlist.id)
            return self._replace_wishlist(wishlist)

    def add_item(self, wishlist_id: UUID, item: WishlistItem) -> bool:
        with self._mutation():
            wishlist = self._state.get(wishlist_id)
            if wishlist is None:
                return self._missing("wishlist", wishlist_id)
            return self._replace_wishlist(
                wishlist.model_copy(update={"items": wishlist.items + (item,)})
            )

    def update_item(self, wishlist_id: UUID, item: WishlistItem) -> bool:
        with self._mutation():
            wishlist = self._state.get(wishlist_id)
            if wishlist is None:
                return self._missing("wishlist", wishlist_id)
            if wishlist.item(item.id) is None:
                return self._missing("item", item.id)
            items = tuple(item if existing.id == item.id else existing for existing in wishlist.items)
            return self._replace_wishlist(wishlist.model_copy(update={"items": items}))

    def delete_item(self, wishlist_id: UUID, item_id: UUID) -> bool:
        with self._mutation():
            wishlist = self._state.get(wishlist_id)
            if wishlist is None:
                return self._missing("wishlist", wishlist_id)
            if wishlist.item(item_id) is None:
                return self._missing("item", item_id)
            items = tuple(existing for existing in wishlist.items if existing.id != item_id)
            return self._replace_wishlist(wishlist.model_copy(update={"items": items}))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Hold the write lock across a read-modify-write; notify once it is released."""
        with self._write_lock:
            before = self._state
            try:
                yield
            finally:
                changed = self._state is not before
        if changed:
            self._notify()

    def _replace_wishlist(self, wishlist: Wishlist) -> bool:
        state = self._state
        wishlists = tuple(wishlist if w.id == wishlist.id else w for w in state.wishlists)
        self._commit(Collection(wishlists=wishlists, selected_id=state.selected_id))
        return True

    def _commit(self, state: Collection) -> None:
        # Caller holds the write lock.
        self._state = state
        self.last_save_ok = self.repository.save(state.wishlists)

    def _notify(self) -> None:
        state = self._state
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:  # noqa: BLE001 - an observer must not undo a committed change
                LOGGER.exception("Wishlist observer %r failed", observer)

    @staticmethod
    def _missing(kind: str, identifier: UUID) -> bool:
        LOGGER.debug("Ignoring operation on unknown %s %s", kind, identifier)
        return False
