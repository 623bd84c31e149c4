from dataclasses import dataclass
from typing import Optional

from delivery.core.config.settings import settings

_UNSET = object()


@dataclass(frozen=True)
class TenantLookupKey:
    domain: Optional[str] = None
    slug: Optional[str] = None


def resolve_host(host: str, suffix=_UNSET) -> TenantLookupKey:
    """
    Map a request host to a tenant lookup key.

    The first label of the host is the subdomain. When it ends with the
    configured suffix (``burger-delivery.example.com`` with ``-delivery``) the
    suffix is stripped and the rest is the slug candidate. The full host is
    kept as the custom domain candidate. Callers must not pass an empty host.
    """
    if suffix is _UNSET:
        suffix = settings.TENANT_SUBDOMAIN_SUFFIX

    subdomain = host.split(".")[0]
    slug = subdomain
    if suffix and subdomain.endswith(suffix):
        slug = subdomain[: -len(suffix)]

    return TenantLookupKey(domain=host, slug=slug)
