"""
Sitemap Generator - Source Package

Modules:
- errors: Exception hierarchy
- entries: Entry records, deferred values and declaration options
- routes: Default route table and record store
- resolver: Entry resolution and declaration running
- serializer: Sitemap Protocol XML output
- generator: Render/build/save orchestration
- ping: Search engine ping notifications
- report: Ping history CSV output
- config: Configuration loading and validation
"""

__version__ = "1.0.0"

from sitemap_generator.entries import Computed, Entry, EntryOptions, LiteralValue, ResourceOptions
from sitemap_generator.errors import ConfigurationError, ResolutionError, SitemapError
from sitemap_generator.generator import SitemapGenerator, get_generator
from sitemap_generator.ping import PingEndpoint, PingNotifier, PingResult
from sitemap_generator.resolver import DeclarationContext, run_declaration
from sitemap_generator.routes import RecordStore, RouteTable
from sitemap_generator.serializer import serialize

__all__ = [
    "Computed",
    "ConfigurationError",
    "DeclarationContext",
    "Entry",
    "EntryOptions",
    "LiteralValue",
    "PingEndpoint",
    "PingNotifier",
    "PingResult",
    "RecordStore",
    "ResolutionError",
    "ResourceOptions",
    "RouteTable",
    "SitemapError",
    "SitemapGenerator",
    "get_generator",
    "run_declaration",
    "serialize",
]
