"""
1.0 Main Orchestrator Module
Command line entry point: build the sitemap, save it and ping search engines.

Flow:
1. Load and validate configuration
2. Build the route table and record store
3. Render the declaration and save the XML
4. Optionally ping the configured endpoints and record the results

Usage:
    python -m sitemap_generator.main
    python -m sitemap_generator.main --config site/sitemap_config.json --ping
    python -m sitemap_generator.main --output build/sitemap.xml --no-ping
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sitemap_generator.config import CONFIG_FILE_PATH, DEFAULT_OUTPUT_PATH, import_object, load_config
from sitemap_generator.errors import SitemapError
from sitemap_generator.generator import SitemapGenerator
from sitemap_generator.ping import (
    DEFAULT_ENDPOINTS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    PingEndpoint,
    PingNotifier,
)
from sitemap_generator.report import save_ping_report
from sitemap_generator.routes import RecordStore, RouteTable

logger = logging.getLogger(__name__)

LOG_FILE = "sitemap_generator.log"


def setup_logging(level: int = logging.INFO) -> None:
    """1.1 Log to both a file and the console."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE),
            logging.StreamHandler()
        ]
    )


def build_record_store(config: Dict[str, Any]) -> RecordStore:
    """
    2.0 Create the record store named by config["record_store"].

    The dotted path may point at a RecordStore (or any object with
    fetch_all) or at a mapping of type name to provider.
    """
    dotted = config.get("record_store")
    if not dotted:
        return RecordStore()
    store = import_object(dotted)
    if hasattr(store, "fetch_all"):
        return store
    if isinstance(store, dict):
        return RecordStore(store)
    raise SitemapError(f"record_store {dotted!r} is neither a record store nor a mapping")


def build_generator(config: Dict[str, Any]) -> SitemapGenerator:
    """2.1 Create a generator from configuration and render its declaration."""
    generator = SitemapGenerator(
        routes=RouteTable(config.get("routes", {})),
        records=build_record_store(config),
    )
    options = {"host": config["host"]}
    if config.get("protocol"):
        options["protocol"] = config["protocol"]
    generator.render(import_object(config["declaration"]), **options)
    return generator


def build_notifier(ping_config: Dict[str, Any]) -> PingNotifier:
    """2.2 Create the ping notifier from the "ping" config section."""
    endpoints: Optional[List[PingEndpoint]] = None
    if ping_config.get("endpoints"):
        endpoints = [PingEndpoint.from_dict(e) for e in ping_config["endpoints"]]
    return PingNotifier(
        endpoints=endpoints if endpoints is not None else list(DEFAULT_ENDPOINTS),
        timeout=ping_config.get("timeout", DEFAULT_TIMEOUT),
        max_workers=ping_config.get("max_workers", DEFAULT_MAX_WORKERS),
        user_agent=ping_config.get("user_agent", DEFAULT_USER_AGENT),
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate sitemap.xml and ping search engines")
    parser.add_argument("--config", default=CONFIG_FILE_PATH, help="Path to the JSON configuration")
    parser.add_argument("--output", help="Where to write the sitemap (overrides output_path)")
    ping_group = parser.add_mutually_exclusive_group()
    ping_group.add_argument("--ping", dest="ping", action="store_true", default=None,
                            help="Ping search engines after saving")
    ping_group.add_argument("--no-ping", dest="ping", action="store_false",
                            help="Skip pinging even if enabled in config")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    3.0 Main function.

    Returns:
        Process exit code (0 success, 1 configuration/build failure)
    """
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    logger.info("=" * 60)
    logger.info("Starting sitemap generation")
    logger.info(f"Run timestamp: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    # 3.1 Load configuration
    config = load_config(args.config)
    if not config:
        logger.error("Failed to load configuration. Exiting.")
        return 1

    output_path = args.output or config.get("output_path", DEFAULT_OUTPUT_PATH)
    ping_config = config.get("ping", {})

    # 3.2 Build and save
    try:
        generator = build_generator(config)
        generator.save(output_path)
    except SitemapError as e:
        logger.error(f"Sitemap build failed: {type(e).__name__}: {e}")
        return 1
    except OSError as e:
        logger.error(f"Sitemap could not be written: {e}")
        return 1

    # 3.3 Ping
    should_ping = args.ping if args.ping is not None else bool(ping_config.get("enabled", False))
    if should_ping:
        sitemap_url = generator.file_url()
        results = build_notifier(ping_config).notify(sitemap_url)

        logger.info("Ping Summary:")
        for endpoint, result in results.items():
            if result.success:
                logger.info(f"  [OK] {endpoint}: status={result.status_code}")
            else:
                logger.warning(f"  [FAIL] {endpoint}: {result.error}")

        report_path = config.get("ping_report_path")
        if report_path:
            save_ping_report(results, sitemap_url, report_path)
    else:
        logger.info("Pinging disabled")

    logger.info("=" * 60)
    logger.info(f"Sitemap generation completed: {len(generator.entries)} URLs")
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
