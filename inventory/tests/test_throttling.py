import pytest
from django.conf import settings
from django.core.cache import cache
from django.test import override_settings
from rest_framework.test import APIClient


def _rates(**scopes):
    return {
        **settings.REST_FRAMEWORK,
        "DEFAULT_THROTTLE_RATES": {**settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"], **scopes},
    }


@pytest.mark.django_db
def test_stock_scope_throttling_hits_limit_quickly():
    cache.clear()
    with override_settings(REST_FRAMEWORK=_rates(stock="1/min")):
        client = APIClient()
        r1 = client.get("/api/v1/inventory/tree/")
        assert r1.status_code == 200
        r2 = client.get("/api/v1/inventory/tree/")
        # Second call should be throttled under scope rate
        assert r2.status_code == 429
    cache.clear()


@pytest.mark.django_db
def test_write_scope_is_separate_from_read_scope():
    cache.clear()
    with override_settings(REST_FRAMEWORK=_rates(stock="1/min", stock_write="100/min")):
        client = APIClient()
        assert client.get("/api/v1/stock/movements/").status_code == 200
        assert client.get("/api/v1/stock/movements/").status_code == 429
        # POST is counted under stock_write; validation still runs
        assert client.post("/api/v1/stock/movements/", {}, format="json").status_code == 400
    cache.clear()
