"""Factory functions for creating pre-configured services."""

from pathlib import Path

from moodlog.clock import Clock
from moodlog.config import GlobalConfig, load_global_config
from moodlog.core.services import Services
from moodlog.notifications import LoggingNotifier, Notifier
from moodlog.storage.base import Store
from moodlog.storage.memory import InMemoryStore


def create_services(
    config: GlobalConfig | None = None,
    store: Store | None = None,
    notifier: Notifier | None = None,
    clock: Clock | None = None,
    template_registry_path: Path | str | None = None,
) -> Services:
    """Create services with every component wired together.

    Args:
        config: Global configuration. Loaded from config.yaml if not provided.
        store: Persistence collaborator. Defaults to a fresh InMemoryStore.
        notifier: Event sink. Defaults to logging every event.
        clock: Time source. Defaults to the UTC system clock.
        template_registry_path: Overrides the configured template catalogue.

    Returns:
        A ready-to-use Services instance.
    """
    return Services(
        store=store if store is not None else InMemoryStore(),
        config=config or load_global_config(),
        clock=clock,
        notifier=notifier if notifier is not None else LoggingNotifier(),
        template_registry_path=template_registry_path,
    )
