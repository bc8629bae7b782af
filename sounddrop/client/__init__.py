"""Client-side helpers for applications consuming the SoundDrop API."""

from sounddrop.client.favorites import FavoritesController, FavoriteState, InvalidTransition
from sounddrop.client.session import ApiError, ClientSession, LoggingNotifier, Notifier

__all__ = [
    "ApiError",
    "ClientSession",
    "FavoriteState",
    "FavoritesController",
    "InvalidTransition",
    "LoggingNotifier",
    "Notifier",
]
