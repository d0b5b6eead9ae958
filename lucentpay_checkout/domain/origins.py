"""Origin allow-listing for browser callers"""

from typing import Iterable, Optional
from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")


class OriginPolicy:
    """
    Decide whether a request Origin may call the service.

    Rules, in order:
    - no Origin header (curl, server-to-server) → allowed
    - unparseable origin or non-http(s) scheme → rejected
    - exact match in the explicit allow-list → allowed
    - host is the primary domain or its www subdomain → allowed
    - host is a subdomain of the storefront platform suffix → allowed
    """

    def __init__(
        self,
        allowed_origins: Iterable[str] = (),
        primary_domain: str | None = None,
        storefront_suffix: str | None = None,
    ):
        self.allowed_origins = frozenset(o.strip().rstrip("/") for o in allowed_origins if o.strip())
        self.trusted_hosts = frozenset()
        if primary_domain:
            domain = primary_domain.lower()
            self.trusted_hosts = frozenset({domain, f"www.{domain}"})
        self.storefront_suffix = f".{storefront_suffix.lower().lstrip('.')}" if storefront_suffix else None

    def is_allowed(self, origin: Optional[str]) -> bool:
        if origin is None or not origin.strip():
            return True

        origin = origin.strip()
        try:
            parts = urlsplit(origin)
            host = parts.hostname
        except ValueError:
            return False

        if parts.scheme not in ALLOWED_SCHEMES or not host:
            return False

        if origin.rstrip("/") in self.allowed_origins:
            return True
        if host in self.trusted_hosts:
            return True
        if self.storefront_suffix and host.endswith(self.storefront_suffix):
            return True
        return False
