"""
1.0 Resolver Module
Turns path and resource declarations into Entry records.

Key features:
- DeclarationContext: the object handed to a declaration; path() and
  resources() are the only operations that add entries
- Params are copied, defaulted from the global host and any deferred
  values are evaluated against the subject
- run_declaration: executes a declaration against a fresh context and
  returns the entries in call order
"""

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from sitemap_generator.entries import Entry, EntryOptions, ResourceOptions, resolve_value
from sitemap_generator.errors import ConfigurationError

logger = logging.getLogger(__name__)


class DeclarationContext:
    """
    2.0 DeclarationContext Class
    Resolver context passed to a declaration function.

    Usage:
        def declare(sitemap):
            sitemap.path("root", priority=1)
            sitemap.path("faq", priority=0.8, change_frequency="daily")
            sitemap.resources("activities", change_frequency="weekly")
    """

    def __init__(
        self,
        host: Optional[str] = None,
        record_store: Any = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ):
        """
        2.1 Initialize an empty context.

        Args:
            host: Global host used when an entry's params carry none
            record_store: Object with fetch_all(type_name), used by
                resources() when no objects provider is given
            defaults: Other global params (e.g. protocol) applied when absent
        """
        self._host = host
        self.record_store = record_store
        self.defaults = dict(defaults or {})
        self.entries: List[Entry] = []

    @property
    def host(self) -> Optional[str]:
        return self._host

    # =========================================================================
    # 3.0 DECLARATION OPERATIONS
    # =========================================================================

    def path(
        self,
        subject: Any,
        options: Union[EntryOptions, Mapping[str, Any], None] = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        change_frequency: Optional[str] = None,
        priority: Optional[float] = None,
        search_attributes: Optional[Mapping[str, Any]] = None,
    ) -> Entry:
        """
        3.1 Add a named route or a single record.

        Args:
            subject: Route name or record, passed through to the route resolver
            options: Prebuilt EntryOptions or a plain options mapping
            params: Route params, literal or deferred
            change_frequency: Sitemap changefreq value
            priority: Sitemap priority value (0.0 - 1.0)
            search_attributes: Mapping of search attributes; unknown keys ignored

        Returns:
            The Entry that was appended
        """
        keyword_given = any(
            value is not None for value in (params, change_frequency, priority, search_attributes)
        )
        if options is not None and keyword_given:
            raise ConfigurationError("Pass either an options object or keyword options, not both")

        if options is None:
            options = EntryOptions.build(
                params=params,
                change_frequency=change_frequency,
                priority=priority,
                search_attributes=search_attributes,
            )
        elif not isinstance(options, EntryOptions):
            options = EntryOptions.from_mapping(options)

        return self.resolve_path(subject, options)

    def resources(
        self,
        type_name: str,
        options: Union[ResourceOptions, Mapping[str, Any], None] = None,
        *,
        objects: Optional[Callable[[], Sequence[Any]]] = None,
        skip_index: bool = False,
        params: Optional[Mapping[str, Any]] = None,
        change_frequency: Optional[str] = None,
        priority: Optional[float] = None,
        search_attributes: Optional[Mapping[str, Any]] = None,
    ) -> List[Entry]:
        """
        3.2 Add a resource collection: its index page and every record.

        Usage:
            sitemap.resources("articles", objects=lambda: Article.published())
            sitemap.resources("articles", skip_index=True)
            sitemap.resources(
                "activities",
                params={"host": lambda obj: f"{obj.location}.example.com"},
                skip_index=True,
            )

        Returns:
            The entries added by this call, index entry first
        """
        keyword_given = objects is not None or skip_index or any(
            value is not None for value in (params, change_frequency, priority, search_attributes)
        )
        if options is not None and keyword_given:
            raise ConfigurationError("Pass either an options object or keyword options, not both")

        if options is None:
            options = ResourceOptions(
                entry=EntryOptions.build(
                    params=params,
                    change_frequency=change_frequency,
                    priority=priority,
                    search_attributes=search_attributes,
                ),
                objects=objects,
                skip_index=skip_index,
            )
        elif not isinstance(options, ResourceOptions):
            options = ResourceOptions.from_mapping(options)

        return self.resolve_resources(type_name, options)

    # =========================================================================
    # 4.0 RESOLUTION
    # =========================================================================

    def resolve_path(self, subject: Any, options: EntryOptions) -> Entry:
        """
        4.1 Resolve one subject into an Entry and record it.

        The caller's params mapping is copied, never modified. No URL is
        computed here; that happens at serialization time.

        Raises:
            ConfigurationError: No host in params and no global host
        """
        # 4.1.1 Shallow copy, then fill in global defaults
        params = dict(options.params)
        if params.get("host") is None:
            params["host"] = self._host
        for key, value in self.defaults.items():
            if params.get(key) is None:
                params[key] = value

        # 4.1.2 Evaluate deferred values against this subject
        params = {key: resolve_value(value, subject) for key, value in params.items()}

        if not params.get("host"):
            raise ConfigurationError(
                f"No host for {subject!r}: set a global host or pass params['host']"
            )

        entry = Entry(
            subject=subject,
            params=params,
            search_attributes=options.search_attributes,
        )
        self.entries.append(entry)
        logger.debug(f"Added entry {subject!r} (host={params['host']})")
        return entry

    def resolve_resources(self, type_name: str, options: ResourceOptions) -> List[Entry]:
        """
        4.2 Resolve a resource collection.

        Raises:
            ConfigurationError: Unknown type and no objects provider
        """
        added: List[Entry] = []

        # 4.2.1 Collection index page
        if not options.skip_index:
            added.append(self.resolve_path(type_name, options.entry))

        # 4.2.2 Subjects from the provider or the record store
        if options.objects is not None:
            subjects = list(options.objects())
        elif self.record_store is not None:
            subjects = list(self.record_store.fetch_all(type_name))
        else:
            raise ConfigurationError(
                f"Cannot fetch '{type_name}': no objects provider and no record store configured"
            )

        # 4.2.3 Same options for every member
        for subject in subjects:
            added.append(self.resolve_path(subject, options.entry))

        logger.info(
            f"Resource '{type_name}': {len(subjects)} records"
            f"{'' if options.skip_index else ' + index'}"
        )
        return added


def run_declaration(
    declaration: Callable[[DeclarationContext], Any],
    context: DeclarationContext,
) -> List[Entry]:
    """
    5.0 Execute a declaration against a context.

    Args:
        declaration: Callable taking the context and issuing path() /
            resources() calls
        context: Context to accumulate into (should be fresh)

    Returns:
        Entries in the order their calls were issued
    """
    if not callable(declaration):
        raise ConfigurationError(
            f"Sitemap declaration must be callable, got {type(declaration).__name__}"
        )
    declaration(context)
    logger.info(f"Declaration produced {len(context.entries)} entries")
    return list(context.entries)
