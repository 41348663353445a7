"""Registry mapping view ids to immutable view configurations."""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from .errors import ViewNotFoundError

if TYPE_CHECKING:
    from .view import ViewContext, ViewLifecycleHost

logger = logging.getLogger(__name__)

ViewFactory = Callable[["ViewContext"], "ViewLifecycleHost"]
ConfigPredicate = Callable[["ViewConfig"], bool]


@dataclass(frozen=True)
class ViewConfig:
    """Static description of a navigable view.

    ``factory`` is any callable taking a ``ViewContext`` and returning an
    object that satisfies the view lifecycle contract (a ``View`` subclass is
    the usual choice).
    """

    view_id: str
    factory: ViewFactory
    title: str = "Untitled View"
    cache: bool = False
    show_in_nav: bool = True
    icon: str = "default"
    route: str = ""
    description: str = ""
    preload: bool = False

    def __post_init__(self) -> None:
        if not self.route:
            object.__setattr__(self, "route", f"/{self.view_id}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "view_id": self.view_id,
            "title": self.title,
            "cache": self.cache,
            "show_in_nav": self.show_in_nav,
            "icon": self.icon,
            "route": self.route,
            "description": self.description,
            "preload": self.preload,
        }


class ConfigListing:
    """Lazy, restartable sequence of configs matching an optional predicate.

    Iterating twice walks the registry twice, so the listing reflects
    registrations made after it was created.
    """

    def __init__(self, configs: dict[str, ViewConfig], predicate: ConfigPredicate | None = None):
        self._configs = configs
        self._predicate = predicate

    def __iter__(self) -> Iterator[ViewConfig]:
        for config in list(self._configs.values()):
            if self._predicate is None or self._predicate(config):
                yield config

    def ids(self) -> list[str]:
        return [c.view_id for c in self]


class ViewRegistry:
    """Id -> ``ViewConfig`` table, last registration wins."""

    def __init__(self) -> None:
        self._configs: dict[str, ViewConfig] = {}

    def register(self, view_id: str, config: ViewConfig) -> ViewConfig:
        """Store ``config`` under ``view_id``.

        The config's own ``view_id`` is normalised to the registration key.
        Re-registering an id overwrites the previous config and logs a warning.
        """
        key = str(view_id)
        if config.view_id != key:
            replace_route = config.route == f"/{config.view_id}"
            config = dataclasses.replace(
                config,
                view_id=key,
                route="" if replace_route else config.route,
            )
        if key in self._configs:
            logger.warning("View '%s' re-registered; previous configuration replaced", key)
        self._configs[key] = config
        logger.debug("Registered view configuration: %s", key)
        return config

    def view(self, view_id: str, **fields: Any) -> Callable[[ViewFactory], ViewFactory]:
        """Decorator to register a view class or factory function.

        Usage:
            @registry.view("home", title="Home", cache=True)
            class HomeView(View):
                ...
        """
        def decorator(factory: ViewFactory) -> ViewFactory:
            self.register(view_id, ViewConfig(view_id=view_id, factory=factory, **fields))
            return factory
        return decorator

    def get(self, view_id: str) -> ViewConfig | None:
        return self._configs.get(view_id)

    def require(self, view_id: str) -> ViewConfig:
        """Return the config for ``view_id`` or raise ``ViewNotFoundError``."""
        config = self._configs.get(view_id)
        if config is None:
            raise ViewNotFoundError(view_id)
        return config

    def has(self, view_id: str) -> bool:
        return view_id in self._configs

    def list(self, predicate: ConfigPredicate | None = None) -> ConfigListing:
        return ConfigListing(self._configs, predicate)

    def labels(self) -> dict[str, str]:
        """View id -> title mapping, used for breadcrumbs."""
        return {view_id: c.title for view_id, c in self._configs.items()}

    def clear(self) -> None:
        self._configs.clear()

    def __contains__(self, view_id: object) -> bool:
        return view_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)
