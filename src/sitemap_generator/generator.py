"""
1.0 Generator Module
Holds the sitemap configuration and runs the render -> build -> save flow.

Key features:
- render() stores global options and the declaration for later
- build() re-runs the declaration from scratch on every call, so
  providers reflect the state of the data at build time
- Each build gets its own DeclarationContext; entries never accumulate
  across builds
- save() writes UTF-8 XML; file_url() is the public URL to ping
"""

import logging
import os
from typing import Any, Callable, List, Optional, Tuple

from sitemap_generator.entries import Entry
from sitemap_generator.errors import ConfigurationError
from sitemap_generator.resolver import DeclarationContext, run_declaration
from sitemap_generator.routes import RecordStore, RouteTable
from sitemap_generator.serializer import serialize

logger = logging.getLogger(__name__)

SITEMAP_FILENAME = "sitemap.xml"

# Global options accepted by render()
RENDER_OPTIONS = ("host", "protocol")


class SitemapGenerator:
    """
    2.0 SitemapGenerator Class

    Usage:
        generator = SitemapGenerator(routes=RouteTable({"faq": "/frequent-questions"}))

        def declare(sitemap):
            sitemap.path("faq", priority=0.8, change_frequency="daily")

        generator.render(declare, host="mywebsite.com")
        generator.save("public/sitemap.xml")
    """

    def __init__(
        self,
        routes: Any = None,
        records: Any = None,
        host: Optional[str] = None,
        protocol: Optional[str] = None,
    ):
        """
        2.1 Initialize the generator.

        Args:
            routes: Route resolver with resolve(subject, params); defaults
                to an empty RouteTable
            records: Record store with fetch_all(type_name); defaults to an
                empty RecordStore
            host: Global host for entries without their own
            protocol: Global protocol param (e.g. "https")
        """
        self.routes = routes if routes is not None else RouteTable()
        self.records = records if records is not None else RecordStore()
        self.host = host
        self.protocol = protocol
        self.declaration: Optional[Callable[[DeclarationContext], Any]] = None
        self.entries: Tuple[Entry, ...] = ()

    def render(self, declaration: Callable[[DeclarationContext], Any], **options: Any) -> None:
        """
        2.2 Set global options and store the declaration.

        Raises:
            ConfigurationError: Unknown option or non-callable declaration
        """
        unknown = sorted(set(options) - set(RENDER_OPTIONS))
        if unknown:
            raise ConfigurationError(f"Unknown render option(s): {', '.join(unknown)}")
        if not callable(declaration):
            raise ConfigurationError(
                f"Sitemap declaration must be callable, got {type(declaration).__name__}"
            )
        for key, value in options.items():
            setattr(self, key, value)
        self.declaration = declaration

    def _new_context(self) -> DeclarationContext:
        defaults = {"protocol": self.protocol} if self.protocol else {}
        return DeclarationContext(host=self.host, record_store=self.records, defaults=defaults)

    def collect(self) -> List[Entry]:
        """
        2.3 Run the stored declaration and return its entries.

        Entries are rebuilt from scratch; the previous build's entries are
        replaced, not appended to.
        """
        if self.declaration is None:
            raise ConfigurationError("No sitemap declaration; call render() first")
        # Cleared first so a failed run leaves no stale entries
        self.entries = ()
        entries = run_declaration(self.declaration, self._new_context())
        self.entries = tuple(entries)
        return entries

    def build(self) -> str:
        """2.4 Run the declaration and return the sitemap XML."""
        return serialize(self.collect(), self.routes)

    def save(self, location: str) -> str:
        """
        2.5 Build the sitemap and write it to the given path.

        Nothing is written if the build fails.

        Returns:
            The path written
        """
        xml = self.build()
        directory = os.path.dirname(location)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(location, "w", encoding="utf-8") as f:
                f.write(xml)
        except OSError as e:
            logger.error(f"Failed to write sitemap to {location}: {e}")
            raise
        logger.info(f"Saved sitemap with {len(self.entries)} URLs to {location}")
        return location

    def file_url(self) -> str:
        """2.6 Public URL of the sitemap file: http://<host>/sitemap.xml"""
        if not self.host:
            raise ConfigurationError("A host is required to build the sitemap URL")
        return f"http://{self.host}/{SITEMAP_FILENAME}"


# Module-level default generator (created on first use)
_generator = None


def get_generator() -> SitemapGenerator:
    """Get or create the default generator."""
    global _generator
    if _generator is None:
        _generator = SitemapGenerator()
    return _generator
