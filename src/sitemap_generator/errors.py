"""Sitemap generator exception hierarchy.

Everything raised by the package on purpose inherits from SitemapError.
Ping failures are never raised; they are reported as PingResult values.
"""


class SitemapError(Exception):
    """Base exception for all sitemap generator errors."""


class ConfigurationError(SitemapError):
    """Invalid declaration, option or configuration value.

    Raised for unknown resource types without an objects provider, a
    missing host, malformed search attributes and unknown render options.
    """


class ResolutionError(SitemapError):
    """A route resolver could not produce a URL for an entry."""

    def __init__(self, message: str = "", *, subject=None) -> None:
        super().__init__(message)
        self.subject = subject
