"""
1.0 Entries Module
Data records shared by the resolver, the serializer and the generator.

Key features:
- Entry: one resolved sitemap URL record (immutable)
- LiteralValue / Computed: deferred parameter values evaluated per subject
- EntryOptions / ResourceOptions: structured declaration options with
  search attribute validation
"""

import inspect
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from sitemap_generator.errors import ConfigurationError

logger = logging.getLogger(__name__)

# 1.1 Search attribute keys mapped to their sitemap XML tag
SEARCH_ATTRIBUTES = {
    "change_frequency": "changefreq",
    "priority": "priority",
}

# Accepted spellings for search attribute keys given as a mapping
SEARCH_ATTRIBUTE_ALIASES = {
    "change_frequency": "change_frequency",
    "changeFrequency": "change_frequency",
    "changefreq": "change_frequency",
    "priority": "priority",
}

CHANGE_FREQUENCIES = ("always", "hourly", "daily", "weekly", "monthly", "yearly", "never")


@dataclass(frozen=True)
class LiteralValue:
    """A parameter value used as-is."""
    value: Any

    def evaluate(self, subject: Any) -> Any:
        return self.value


@dataclass(frozen=True)
class Computed:
    """
    A parameter value computed per subject at resolution time.

    The wrapped callable takes either no arguments or the subject.
    """
    func: Callable[..., Any]

    def evaluate(self, subject: Any) -> Any:
        if _accepts_no_arguments(self.func):
            return self.func()
        return self.func(subject)


def _accepts_no_arguments(func: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures get the subject
        return False
    for parameter in signature.parameters.values():
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            return False
        if parameter.default is parameter.empty:
            return False
    return True


def resolve_value(value: Any, subject: Any) -> Any:
    """Evaluates a possibly deferred parameter value for a subject."""
    if isinstance(value, (LiteralValue, Computed)):
        return value.evaluate(subject)
    if callable(value):
        return Computed(value).evaluate(subject)
    return value


@dataclass(frozen=True)
class Entry:
    """
    2.0 Entry
    One sitemap URL record: the mapped subject, its resolved route params
    and its search attributes. Params are stored read-only.
    """
    subject: Any
    params: Mapping[str, Any]
    search_attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "search_attributes", MappingProxyType(dict(self.search_attributes)))

    @property
    def host(self) -> Optional[str]:
        return self.params.get("host")


def validate_search_attribute(key: str, value: Any) -> Any:
    """
    3.0 Validate one recognized search attribute value.

    Raises:
        ConfigurationError: change frequency not in the sitemap vocabulary,
            or priority not a number between 0.0 and 1.0
    """
    if key == "change_frequency":
        if not isinstance(value, str) or value.lower() not in CHANGE_FREQUENCIES:
            raise ConfigurationError(
                f"Invalid change_frequency {value!r}; expected one of {', '.join(CHANGE_FREQUENCIES)}"
            )
        return value.lower()

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"Invalid priority {value!r}; expected a number")
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"Invalid priority {value!r}; expected a value between 0.0 and 1.0")
    return value


def filter_search_attributes(attributes: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Keeps the recognized search attributes, dropping unknown keys."""
    filtered: Dict[str, Any] = {}
    for key, value in (attributes or {}).items():
        canonical = SEARCH_ATTRIBUTE_ALIASES.get(key)
        if canonical is None:
            logger.debug(f"Ignoring unrecognized search attribute: {key}")
            continue
        if value is None:
            continue
        filtered[canonical] = validate_search_attribute(canonical, value)
    return filtered


@dataclass(frozen=True)
class EntryOptions:
    """
    4.0 EntryOptions
    Options for a single path declaration.

    Attributes:
        params: Route params; values may be plain, LiteralValue, Computed or
            a plain callable (treated as Computed)
        search_attributes: Validated change_frequency / priority values
    """
    params: Mapping[str, Any] = field(default_factory=dict)
    search_attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        params: Optional[Mapping[str, Any]] = None,
        change_frequency: Optional[str] = None,
        priority: Optional[float] = None,
        search_attributes: Optional[Mapping[str, Any]] = None,
    ) -> "EntryOptions":
        attributes = dict(search_attributes or {})
        if change_frequency is not None:
            attributes["change_frequency"] = change_frequency
        if priority is not None:
            attributes["priority"] = priority
        if params is not None and not isinstance(params, Mapping):
            raise ConfigurationError(f"params must be a mapping, got {type(params).__name__}")
        return cls(params=dict(params or {}), search_attributes=filter_search_attributes(attributes))

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "EntryOptions":
        """Builds options from a plain mapping, rejecting unknown keys."""
        known = {"params", "search_attributes"} | set(SEARCH_ATTRIBUTE_ALIASES)
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"Unknown path option(s): {', '.join(unknown)}")
        attributes = dict(options.get("search_attributes") or {})
        for key, value in options.items():
            if key in SEARCH_ATTRIBUTE_ALIASES:
                attributes[key] = value
        return cls.build(params=options.get("params"), search_attributes=attributes)


@dataclass(frozen=True)
class ResourceOptions:
    """
    4.1 ResourceOptions
    Options for a resource collection declaration. The entry options are
    shared unmodified by the index entry and every member entry.
    """
    entry: EntryOptions = field(default_factory=EntryOptions)
    objects: Optional[Callable[[], Sequence[Any]]] = None
    skip_index: bool = False

    def __post_init__(self):
        if self.objects is not None and not callable(self.objects):
            raise ConfigurationError("objects must be a zero-argument callable returning the subjects")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "ResourceOptions":
        """Builds options from a plain mapping, rejecting unknown keys."""
        own_keys = {"objects", "skip_index", "skipIndex"}
        entry_options = {k: v for k, v in options.items() if k not in own_keys}
        return cls(
            entry=EntryOptions.from_mapping(entry_options),
            objects=options.get("objects"),
            skip_index=bool(options.get("skip_index", options.get("skipIndex", False))),
        )
