"""Request interception: block heavy resources and tracker domains.

Blocking images, fonts and media typically halves page load time for
scraping and PDF-free workloads. Do not block images when you need
screenshots.
"""
import logging
from dataclasses import dataclass, field
from urllib.parse import urlsplit

log = logging.getLogger(__name__)

DEFAULT_BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font"})

TRACKER_DOMAINS = frozenset({
    "doubleclick.net",
    "googlesyndication.com",
    "googletagservices.com",
    "googletagmanager.com",
    "google-analytics.com",
    "adservice.google.com",
    "amazon-adsystem.com",
    "adnxs.com",
    "facebook.net",
    "criteo.com",
    "outbrain.com",
    "taboola.com",
    "scorecardresearch.com",
    "quantserve.com",
    "hotjar.com",
    "fullstory.com",
    "newrelic.com",
    "nr-data.net",
})


def hostname_of(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _domain_matches(host: str, domains) -> bool:
    """True if *host* equals one of *domains* or is a subdomain of one."""
    if not host:
        return False
    for domain in domains:
        domain = domain.lower().lstrip(".")
        if host == domain or host.endswith("." + domain):
            return True
    return False


def should_block(
    url: str,
    resource_type: str,
    *,
    blocked_types=DEFAULT_BLOCKED_RESOURCE_TYPES,
    blocked_domains=TRACKER_DOMAINS,
    allowed_domains=(),
) -> bool:
    """Decide whether a request should be aborted.

    Allowed domains always pass; blocked domains are checked next; then the
    resource type. ``data:`` and ``blob:`` URLs are never blocked.
    """
    if url.startswith(("data:", "blob:")):
        return False
    host = hostname_of(url)
    if _domain_matches(host, allowed_domains):
        return False
    if _domain_matches(host, blocked_domains):
        return True
    return resource_type in blocked_types


@dataclass
class RequestStats:
    allowed: int = 0
    blocked: int = 0
    blocked_by_type: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "blocked": self.blocked,
            "blocked_by_type": dict(self.blocked_by_type),
        }


def block_requests(target, config=None):
    """Install a ``route("**/*")`` handler on a page or context.

    *config* is an ``InterceptionConfig``; ``None`` means the defaults
    (block images/media/fonts and tracker domains). Returns
    ``(handler, stats)``; pass the handler to :func:`unblock_requests`.
    """
    if config is None:
        blocked_types = DEFAULT_BLOCKED_RESOURCE_TYPES
        blocked_domains = TRACKER_DOMAINS
        allowed_domains: frozenset[str] = frozenset()
    else:
        blocked_types = frozenset(config.blocked_resource_types)
        blocked_domains = frozenset(config.blocked_domains)
        if config.block_trackers:
            blocked_domains |= TRACKER_DOMAINS
        allowed_domains = frozenset(config.allowed_domains)

    stats = RequestStats()

    def _route_handler(route, request):
        resource_type = request.resource_type
        if should_block(
            request.url, resource_type,
            blocked_types=blocked_types,
            blocked_domains=blocked_domains,
            allowed_domains=allowed_domains,
        ):
            stats.blocked += 1
            stats.blocked_by_type[resource_type] = stats.blocked_by_type.get(resource_type, 0) + 1
            route.abort()
            return
        stats.allowed += 1
        route.continue_()

    target.route("**/*", _route_handler)
    log.debug("Request blocking installed (%d types, %d domains)",
              len(blocked_types), len(blocked_domains))
    return _route_handler, stats


def unblock_requests(target, handler) -> None:
    target.unroute("**/*", handler)
