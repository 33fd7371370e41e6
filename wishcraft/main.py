"""Headless WishCraft host: owns the store and serves the extension bridge."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .bridge import BridgeServer, create_bridge_app
from .config_loader import AppConfig, load_app_config
from .dispatcher import OwnerDispatcher
from .persistence import WishlistRepository
from .store import WishlistStore

LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class Application:
    """Everything the host process owns; a desktop UI would hold the same trio."""

    config: AppConfig
    store: WishlistStore
    dispatcher: OwnerDispatcher
    bridge: BridgeServer | None = None


def build_application(config: AppConfig) -> Application:
    repository = WishlistRepository(config.storage.path)
    store = WishlistStore.open(repository)
    dispatcher = OwnerDispatcher()

    bridge = None
    if config.bridge.enabled:
        app = create_bridge_app(store, dispatcher, config.bridge)
        bridge = BridgeServer(
            app,
            host=config.bridge.host,
            port=config.bridge.port,
            log_level=config.logging.level,
        )
    return Application(config=config, store=store, dispatcher=dispatcher, bridge=bridge)


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.data_dir:
        storage = config.storage.model_copy(update={"directory": str(args.data_dir)})
        config = config.model_copy(update={"storage": storage})
    if args.port is not None:
        bridge = config.bridge.model_copy(update={"port": args.port})
        config = config.model_copy(update={"bridge": bridge})
    if args.log_level:
        log_config = config.logging.model_copy(update={"level": args.log_level})
        config = config.model_copy(update={"logging": log_config})
    return config


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the WishCraft wishlist store with its local browser-extension bridge."
    )
    parser.add_argument("--config", type=Path, help="Path to app.config.yaml")
    parser.add_argument("--data-dir", type=Path, help="Directory holding wishlists.json")
    parser.add_argument("--port", type=int, help="Bridge port (default 6521)")
    parser.add_argument("--log-level", help="Logging level, e.g. DEBUG or INFO")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    config = _apply_overrides(load_app_config(args.config), args)

    logging.basicConfig(level=config.logging.level.upper(), format=LOG_FORMAT)

    application = build_application(config)
    LOGGER.info(
        "Loaded %d wishlist(s) from %s",
        len(application.store.wishlists),
        application.store.repository.path,
    )
    if application.bridge is not None:
        application.bridge.start()

    try:
        application.dispatcher.run_forever()
    except KeyboardInterrupt:
        LOGGER.info("Shutting down")
    finally:
        application.dispatcher.stop()
        if application.bridge is not None:
            application.bridge.stop()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entry point
    raise SystemExit(main())
