"""
1.0 Sitemap Serializer Module
Renders resolved entries as a Sitemap Protocol urlset document.

Key features:
- Every <loc> is resolved before any XML is built, so a resolution
  error never yields a partial document
- <changefreq> / <priority> only for entries that declare them
- UTF-8 output with XML declaration and 2-space indentation (lxml)
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Tuple

from lxml import etree

from sitemap_generator.entries import SEARCH_ATTRIBUTES, Entry
from sitemap_generator.errors import ResolutionError

logger = logging.getLogger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


def _tag(name: str) -> str:
    return f"{{{SITEMAP_NAMESPACE}}}{name}"


def format_search_value(key: str, value: Any) -> str:
    """Priority is a plain decimal without exponent (0.8, 1, 0.00001); others are str()."""
    if key == "priority":
        return format(Decimal(str(value)).normalize(), "f")
    return str(value)


def resolve_locations(entries: Iterable[Entry], route_resolver: Any) -> List[Tuple[Entry, str]]:
    """
    2.0 Resolve the <loc> of every entry.

    Raises:
        ResolutionError: The resolver failed for any entry
    """
    resolved = []
    for entry in entries:
        try:
            location = route_resolver.resolve(entry.subject, entry.params)
        except ResolutionError:
            logger.error(f"Could not resolve a URL for {entry.subject!r}")
            raise
        except (LookupError, ValueError) as e:
            logger.error(f"Could not resolve a URL for {entry.subject!r}: {e}")
            raise ResolutionError(f"Could not resolve {entry.subject!r}: {e}", subject=entry.subject) from e
        if not location:
            raise ResolutionError(f"Empty URL resolved for {entry.subject!r}", subject=entry.subject)
        resolved.append((entry, location))
    return resolved


def serialize(entries: Iterable[Entry], route_resolver: Any) -> str:
    """
    3.0 Serialize entries to sitemap XML text.

    Args:
        entries: Entries in output order
        route_resolver: Object with resolve(subject, params) -> URL

    Returns:
        The XML document as a string
    """
    resolved = resolve_locations(entries, route_resolver)

    urlset = etree.Element(_tag("urlset"), nsmap={None: SITEMAP_NAMESPACE})
    for entry, location in resolved:
        url_element = etree.SubElement(urlset, _tag("url"))
        etree.SubElement(url_element, _tag("loc")).text = location
        for key, tag in SEARCH_ATTRIBUTES.items():
            if key in entry.search_attributes:
                etree.SubElement(url_element, _tag(tag)).text = format_search_value(
                    key, entry.search_attributes[key]
                )

    xml_bytes = etree.tostring(urlset, pretty_print=True, xml_declaration=True, encoding="UTF-8")
    logger.info(f"Serialized sitemap with {len(resolved)} URLs ({len(xml_bytes):,} bytes)")
    return xml_bytes.decode("utf-8")
