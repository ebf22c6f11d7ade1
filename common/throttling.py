"""Scoped throttle that reads rates from Django settings at request time.

DRF caches ``DEFAULT_THROTTLE_RATES`` on the class when the module is
imported; reading settings per request lets ``override_settings`` in tests
change limits reliably.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class SettingsScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rf = getattr(settings, "REST_FRAMEWORK", {})
        rates = rf.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)
