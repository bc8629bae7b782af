"""Client-side favorites view kept in sync with the API through optimistic updates.

Each sample moves through a small state machine while a mutation is in
flight.  Adds are shown immediately (``PENDING_ADD``) but only enter the
durable list once the server confirms them; removals drop the record at once
and restore the previous list if the server refuses.  Mutations on the same
sample are serialised, so a quick double toggle means "add, then remove".
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

import httpx
from pydantic import ValidationError

from sounddrop.client.session import ApiError, ClientSession
from sounddrop.schemas.favorites import FavoriteRead
from sounddrop.settings import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

FAVORITES_PATH = "/api/favorites"

ADDED_MESSAGE = "Added to favorites"
REMOVED_MESSAGE = "Removed from favorites"
ADD_FAILED_MESSAGE = "Failed to add favorite"
REMOVE_FAILED_MESSAGE = "Failed to remove favorite"
FETCH_FAILED_MESSAGE = "Failed to fetch favorites"


class FavoriteState(str, Enum):
    IDLE = "idle"
    PENDING_ADD = "pending_add"
    CONFIRMED = "confirmed"
    PENDING_REMOVE = "pending_remove"


class FavoriteEvent(str, Enum):
    ADD_REQUESTED = "add_requested"
    ADD_CONFIRMED = "add_confirmed"
    ADD_FAILED = "add_failed"
    REMOVE_REQUESTED = "remove_requested"
    REMOVE_CONFIRMED = "remove_confirmed"
    REMOVE_FAILED = "remove_failed"
    LOADED = "loaded"
    RESET = "reset"


TRANSITIONS: dict[tuple[FavoriteState, FavoriteEvent], FavoriteState] = {
    (FavoriteState.IDLE, FavoriteEvent.ADD_REQUESTED): FavoriteState.PENDING_ADD,
    (FavoriteState.IDLE, FavoriteEvent.LOADED): FavoriteState.CONFIRMED,
    (FavoriteState.PENDING_ADD, FavoriteEvent.ADD_CONFIRMED): FavoriteState.CONFIRMED,
    (FavoriteState.PENDING_ADD, FavoriteEvent.ADD_FAILED): FavoriteState.IDLE,
    (FavoriteState.PENDING_ADD, FavoriteEvent.LOADED): FavoriteState.PENDING_ADD,
    (FavoriteState.CONFIRMED, FavoriteEvent.REMOVE_REQUESTED): FavoriteState.PENDING_REMOVE,
    (FavoriteState.CONFIRMED, FavoriteEvent.LOADED): FavoriteState.CONFIRMED,
    (FavoriteState.PENDING_REMOVE, FavoriteEvent.REMOVE_CONFIRMED): FavoriteState.IDLE,
    (FavoriteState.PENDING_REMOVE, FavoriteEvent.REMOVE_FAILED): FavoriteState.CONFIRMED,
    (FavoriteState.PENDING_REMOVE, FavoriteEvent.LOADED): FavoriteState.PENDING_REMOVE,
}


class InvalidTransition(RuntimeError):
    def __init__(self, state: FavoriteState, event: FavoriteEvent) -> None:
        super().__init__(f"Cannot apply {event.value!r} to a favorite in state {state.value!r}")
        self.state = state
        self.event = event


def next_state(state: FavoriteState, event: FavoriteEvent) -> FavoriteState:
    """Return the state reached from ``state`` on ``event``."""

    if event is FavoriteEvent.RESET:
        return FavoriteState.IDLE
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(state, event) from None


class FavoritesController:
    def __init__(self, session: ClientSession, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._session = session
        self.page_size = page_size
        self.favorites: list[FavoriteRead] = []
        self.page = 1
        self.has_more = True
        self.is_loading = False
        self.error: str | None = None
        self._states: dict[str, FavoriteState] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def state_of(self, sample_id: str) -> FavoriteState:
        return self._states.get(sample_id, FavoriteState.IDLE)

    def is_favorited(self, sample_id: str) -> bool:
        """True when a confirmed record exists or an add is in flight."""

        if not self._session.is_authenticated:
            return False
        if self.state_of(sample_id) is FavoriteState.PENDING_ADD:
            return True
        return self._find_by_sample(sample_id) is not None

    async def load(self, page: int = 1) -> None:
        """Fetch one page; page 1 replaces the list, later pages append.

        Failures are recorded in :attr:`error` and never raised.
        """

        if not self._session.is_authenticated:
            self.reset()
            return

        self.is_loading = True
        self.error = None
        try:
            body = await self._session.request(
                "GET", FAVORITES_PATH, params={"page": page, "limit": self.page_size}
            )
            records = [FavoriteRead.model_validate(item) for item in body["data"]]
            has_more = bool(body["pagination"]["hasNextPage"])
        except (ApiError, httpx.HTTPError, ValidationError, KeyError, TypeError) as exc:
            self.error = str(exc) or FETCH_FAILED_MESSAGE
            logger.warning("Fetch favorites error: %s", exc)
            return
        finally:
            self.is_loading = False

        if page == 1:
            self._replace(records)
        else:
            self._append(records)
        self.has_more = has_more
        self.page = page

    async def load_more(self) -> None:
        if self.has_more and not self.is_loading:
            await self.load(self.page + 1)

    async def refetch(self) -> None:
        await self.load(1)

    async def toggle_favorite(self, sample_id: str) -> None:
        """Remove the sample's favorite when present, otherwise add it optimistically."""

        if not self._session.is_authenticated:
            raise PermissionError("Must be authenticated to favorite samples")

        async with self._lock_for(sample_id):
            existing = self._find_by_sample(sample_id)
            if existing is not None:
                await self._remove(existing)
            else:
                await self._add(sample_id)

    async def remove_favorite(self, favorite_id: str) -> None:
        if not self._session.is_authenticated:
            raise PermissionError("Must be authenticated to remove favorites")

        record = self._find_by_id(favorite_id)
        if record is None:
            raise LookupError(f"Favorite {favorite_id} is not loaded")
        async with self._lock_for(record.sample_id):
            # Re-read under the lock; a concurrent toggle may have removed it.
            record = self._find_by_id(favorite_id)
            if record is None:
                return
            await self._remove(record)

    def reset(self) -> None:
        """Forget everything, as on sign-out."""

        self.favorites = []
        self.page = 1
        self.has_more = True
        self.error = None
        self._states.clear()

    async def _add(self, sample_id: str) -> None:
        self._transition(sample_id, FavoriteEvent.ADD_REQUESTED)
        try:
            body = await self._session.request(
                "POST", FAVORITES_PATH, json={"sampleId": sample_id}
            )
            record = FavoriteRead.model_validate(body)
        except BaseException as exc:
            self._transition(sample_id, FavoriteEvent.ADD_FAILED)
            # A reload during the request may already hold the server's record.
            if self._find_by_sample(sample_id) is not None:
                self._transition(sample_id, FavoriteEvent.LOADED)
            if isinstance(exc, Exception):
                self._report_failure(ADD_FAILED_MESSAGE, exc)
            raise

        self.favorites = [
            record,
            *(f for f in self.favorites if f.id != record.id and f.sample_id != sample_id),
        ]
        self._transition(sample_id, FavoriteEvent.ADD_CONFIRMED)
        self._session.notifier.success(ADDED_MESSAGE)

    async def _remove(self, record: FavoriteRead) -> None:
        self._transition(record.sample_id, FavoriteEvent.REMOVE_REQUESTED)
        snapshot = list(self.favorites)
        self.favorites = [f for f in self.favorites if f.id != record.id]
        try:
            await self._session.request("DELETE", f"{FAVORITES_PATH}/{record.id}")
        except BaseException as exc:
            self.favorites = snapshot
            self._transition(record.sample_id, FavoriteEvent.REMOVE_FAILED)
            if isinstance(exc, Exception):
                self._report_failure(REMOVE_FAILED_MESSAGE, exc)
            raise

        self._transition(record.sample_id, FavoriteEvent.REMOVE_CONFIRMED)
        self._session.notifier.success(REMOVED_MESSAGE)

    def _replace(self, records: list[FavoriteRead]) -> None:
        incoming = {record.sample_id for record in records}
        for sample_id, state in list(self._states.items()):
            if state is FavoriteState.CONFIRMED and sample_id not in incoming:
                self._transition(sample_id, FavoriteEvent.RESET)
        self.favorites = [
            record for record in records if not self._is_pending_remove(record.sample_id)
        ]
        for record in records:
            self._transition(record.sample_id, FavoriteEvent.LOADED)

    def _append(self, records: list[FavoriteRead]) -> None:
        known = {favorite.id for favorite in self.favorites}
        for record in records:
            if record.id in known or self._is_pending_remove(record.sample_id):
                continue
            known.add(record.id)
            self.favorites.append(record)
            self._transition(record.sample_id, FavoriteEvent.LOADED)

    def _is_pending_remove(self, sample_id: str) -> bool:
        return self.state_of(sample_id) is FavoriteState.PENDING_REMOVE

    def _transition(self, sample_id: str, event: FavoriteEvent) -> None:
        state = next_state(self.state_of(sample_id), event)
        if state is FavoriteState.IDLE:
            self._states.pop(sample_id, None)
        else:
            self._states[sample_id] = state

    def _report_failure(self, message: str, exc: Exception) -> None:
        description = str(exc) or message
        self.error = description
        logger.warning("%s: %s", message, description)
        self._session.notifier.error(message, description)

    def _lock_for(self, sample_id: str) -> asyncio.Lock:
        lock = self._locks.get(sample_id)
        if lock is None:
            lock = self._locks[sample_id] = asyncio.Lock()
        return lock

    def _find_by_sample(self, sample_id: str) -> FavoriteRead | None:
        return next((f for f in self.favorites if f.sample_id == sample_id), None)

    def _find_by_id(self, favorite_id: str) -> FavoriteRead | None:
        return next((f for f in self.favorites if f.id == favorite_id), None)


__all__ = [
    "FavoriteEvent",
    "FavoriteState",
    "FavoritesController",
    "InvalidTransition",
    "TRANSITIONS",
    "next_state",
]
