"""
1.0 Routes Module
Default implementations of the two capabilities the generator consumes.

Key features:
- RouteTable: named path templates resolved to absolute URLs
  (host/protocol/port params, leftover params as query string)
- RecordStore: type name -> subjects lookup, evaluated at fetch time

Any object exposing resolve(subject, params) or fetch_all(type_name) can
stand in for these.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
from urllib.parse import quote, urlencode

from sitemap_generator.errors import ConfigurationError, ResolutionError

logger = logging.getLogger(__name__)

# Params consumed when building the URL authority, never sent as query string
RESERVED_PARAMS = ("host", "protocol", "port")
DEFAULT_PROTOCOL = "http"

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


def route_name_for(subject: Any) -> str:
    """
    Route name for a subject: the subject itself when it is a string,
    otherwise its route_name attribute or its snake_cased class name.
    """
    if isinstance(subject, str):
        return subject
    name = getattr(subject, "route_name", None)
    if name:
        return name
    class_name = type(subject).__name__
    return re.sub(r"(?<!^)(?=[A-Z])", "_", class_name).lower()


class RouteTable:
    """
    2.0 RouteTable Class
    Maps route names to path templates like "/articles/{id}".
    """

    def __init__(self, routes: Optional[Mapping[str, str]] = None):
        self._routes: Dict[str, str] = {}
        for name, template in (routes or {}).items():
            self.add(name, template)

    def add(self, name: str, template: str) -> None:
        if not template.startswith("/"):
            template = "/" + template
        self._routes[name] = template
        logger.debug(f"Registered route {name} -> {template}")

    def __contains__(self, name: str) -> bool:
        return name in self._routes

    def resolve(self, subject: Any, params: Mapping[str, Any]) -> str:
        """
        2.1 Resolve a subject and its params into a URL.

        Placeholders are filled from params first, then from attributes of
        the subject. Params that are neither reserved nor used by the
        template are appended as a query string.

        Args:
            subject: Route name or record
            params: Resolved entry params (host, protocol, port, ...)

        Returns:
            Absolute URL when a host is present, otherwise the path

        Raises:
            ResolutionError: Unknown route or a placeholder without a value
        """
        name = route_name_for(subject)
        template = self._routes.get(name)
        if template is None:
            raise ResolutionError(f"No route named '{name}'", subject=subject)

        used = set()

        def fill(match: "re.Match") -> str:
            key = match.group(1)
            if key in params and params[key] is not None:
                used.add(key)
                value = params[key]
            elif not isinstance(subject, str) and getattr(subject, key, None) is not None:
                value = getattr(subject, key)
            else:
                raise ResolutionError(
                    f"Route '{name}' requires param '{key}'", subject=subject
                )
            return quote(str(value), safe="")

        path = PLACEHOLDER_PATTERN.sub(fill, template)

        query = [
            (key, value)
            for key, value in params.items()
            if key not in RESERVED_PARAMS and key not in used and value is not None
        ]
        if query:
            path = f"{path}?{urlencode(query)}"

        host = params.get("host")
        if not host:
            return path

        protocol = params.get("protocol") or DEFAULT_PROTOCOL
        port = params.get("port")
        authority = f"{host}:{port}" if port else str(host)
        return f"{protocol}://{authority}{path}"


Provider = Union[Callable[[], Sequence[Any]], Sequence[Any]]


class RecordStore:
    """
    3.0 RecordStore Class
    Registry of subject collections keyed by resource type name.
    Providers are called on every fetch so results reflect current state.
    """

    def __init__(self, collections: Optional[Mapping[str, Provider]] = None):
        self._providers: Dict[str, Provider] = {}
        for type_name, provider in (collections or {}).items():
            self.register(type_name, provider)

    def register(self, type_name: str, provider: Provider) -> None:
        self._providers[type_name] = provider

    def fetch_all(self, type_name: str) -> List[Any]:
        """
        3.1 Fetch every subject of a resource type.

        Raises:
            ConfigurationError: The type name was never registered
        """
        if type_name not in self._providers:
            raise ConfigurationError(
                f"Unknown resource type '{type_name}'; register it or pass an objects provider"
            )
        provider = self._providers[type_name]
        records = provider() if callable(provider) else provider
        return list(records)
