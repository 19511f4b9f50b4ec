"""
1.0 Ping Notifier Module
Tells search engines that the sitemap has changed.

Key features:
- One HTTP GET per endpoint with the sitemap URL as a query parameter
- Endpoints are independent: a failure is recorded and the rest still run
- No automatic retry; bounded per-request timeout
- Concurrent requests with ThreadPoolExecutor (sequential for one worker)
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from sitemap_generator.errors import ConfigurationError

logger = logging.getLogger(__name__)

# 1.1 Default settings
DEFAULT_TIMEOUT = 10
DEFAULT_MAX_WORKERS = 4
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SitemapGenerator/1.0)"


@dataclass(frozen=True)
class PingEndpoint:
    """A search engine ping URL and the query parameter carrying the sitemap URL."""
    name: str
    url: str
    param: str = "sitemap"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PingEndpoint":
        return cls(
            name=data.get("name") or data["url"],
            url=data["url"],
            param=data.get("param", "sitemap"),
        )


DEFAULT_ENDPOINTS = (
    PingEndpoint("google", "http://www.google.com/webmasters/tools/ping", "sitemap"),
    PingEndpoint("bing", "http://www.bing.com/webmaster/ping.aspx", "siteMap"),
)


@dataclass
class PingResult:
    """Outcome of pinging one endpoint."""
    endpoint: str
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    response_time_ms: Optional[int] = None
    pinged_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PingNotifier:
    """
    2.0 PingNotifier Class
    Sends the sitemap URL to every configured endpoint.
    """

    def __init__(
        self,
        endpoints: Optional[Sequence[PingEndpoint]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """
        2.1 Initialize the notifier.

        Args:
            endpoints: Endpoints to ping (default: Google and Bing)
            timeout: Per-request timeout in seconds
            max_workers: Concurrent requests; 1 pings sequentially
            user_agent: User-Agent header sent with each ping
        """
        self.endpoints: List[PingEndpoint] = list(
            DEFAULT_ENDPOINTS if endpoints is None else endpoints
        )
        names = [e.name for e in self.endpoints]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate ping endpoint name(s): {', '.join(duplicates)}")
        self.timeout = timeout
        self.max_workers = max(1, int(max_workers))
        self.user_agent = user_agent

        logger.info(
            f"PingNotifier initialized: {len(self.endpoints)} endpoints, "
            f"timeout={self.timeout}s, workers={self.max_workers}"
        )

    def ping_endpoint(self, endpoint: PingEndpoint, sitemap_url: str) -> PingResult:
        """
        3.0 Ping a single endpoint.

        Never raises; every failure is returned in the PingResult.
        """
        headers = {"User-Agent": self.user_agent}
        start = datetime.now()

        try:
            response = requests.get(
                endpoint.url,
                params={endpoint.param: sitemap_url},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"Timeout pinging {endpoint.name} after {self.timeout}s")
            return PingResult(endpoint.name, False, error=f"Timeout after {self.timeout}s")
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error pinging {endpoint.name}: {e}")
            return PingResult(endpoint.name, False, error=f"ConnectionError: {e}")
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error pinging {endpoint.name}: {e}")
            return PingResult(endpoint.name, False, error=f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error pinging {endpoint.name}: {type(e).__name__}: {e}")
            return PingResult(endpoint.name, False, error=f"{type(e).__name__}: {e}")

        elapsed = round((datetime.now() - start).total_seconds() * 1000)
        success = 200 <= response.status_code < 300
        error = None if success else f"HTTP {response.status_code}"

        if success:
            logger.info(f"Pinged {endpoint.name} (status={response.status_code}, {elapsed}ms)")
        else:
            logger.warning(f"Ping to {endpoint.name} failed: status={response.status_code}")

        return PingResult(
            endpoint=endpoint.name,
            success=success,
            status_code=response.status_code,
            error=error,
            response_time_ms=elapsed,
        )

    def notify(self, sitemap_url: str) -> Dict[str, PingResult]:
        """
        4.0 Ping every endpoint with the sitemap URL.

        Waits for all attempts before returning.

        Returns:
            Mapping of endpoint name to PingResult
        """
        logger.info(f"Pinging {len(self.endpoints)} endpoints with {sitemap_url}")
        results: Dict[str, PingResult] = {}

        if len(self.endpoints) <= 1 or self.max_workers == 1:
            for endpoint in self.endpoints:
                results[endpoint.name] = self.ping_endpoint(endpoint, sitemap_url)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_endpoint = {
                    executor.submit(self.ping_endpoint, endpoint, sitemap_url): endpoint
                    for endpoint in self.endpoints
                }
                for future in as_completed(future_to_endpoint):
                    endpoint = future_to_endpoint[future]
                    try:
                        results[endpoint.name] = future.result()
                    except Exception as e:
                        logger.error(f"Unexpected error pinging {endpoint.name}: {e}")
                        results[endpoint.name] = PingResult(
                            endpoint.name, False, error=f"{type(e).__name__}: {e}"
                        )

        # Keep configuration order in the report
        ordered = {e.name: results[e.name] for e in self.endpoints if e.name in results}
        succeeded = sum(1 for r in ordered.values() if r.success)
        logger.info(f"Ping complete: {succeeded}/{len(ordered)} endpoints succeeded")
        return ordered
