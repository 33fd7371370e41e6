"""WishCraft wishlist store, durable file and local browser-extension bridge."""

from __future__ import annotations

__version__ = "0.1.0"
