import pytest

from delivery.core.host_resolver import TenantLookupKey, resolve_host


def test_strips_subdomain_suffix():
    key = resolve_host("burger-delivery.example.com", suffix="-delivery")
    assert key == TenantLookupKey(domain="burger-delivery.example.com", slug="burger")


def test_subdomain_without_suffix_is_the_slug():
    key = resolve_host("pizza.example.com", suffix="-delivery")
    assert key.slug == "pizza"
    assert key.domain == "pizza.example.com"


def test_custom_domain_keeps_full_host():
    key = resolve_host("www.pizzeria-napoli.com.br", suffix="-delivery")
    assert key.domain == "www.pizzeria-napoli.com.br"
    assert key.slug == "www"


def test_host_without_dot():
    assert resolve_host("localhost", suffix="-delivery") == TenantLookupKey(
        domain="localhost", slug="localhost"
    )


@pytest.mark.parametrize("suffix", [None, ""])
def test_no_suffix_configured(suffix):
    key = resolve_host("burger-delivery.example.com", suffix=suffix)
    assert key.slug == "burger-delivery"


def test_uses_configured_suffix_by_default(monkeypatch):
    from delivery.core.config.settings import settings

    monkeypatch.setattr(settings, "TENANT_SUBDOMAIN_SUFFIX", "-food")
    assert resolve_host("sushi-food.example.com").slug == "sushi"


def test_is_deterministic():
    assert resolve_host("a-delivery.x.y", "-delivery") == resolve_host("a-delivery.x.y", "-delivery")
