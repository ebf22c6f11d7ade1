import pytest
from catalog.models import Color, Size
from django.core.management import call_command
from inventory.models import Location


@pytest.mark.django_db
def test_seed_catalog_is_idempotent():
    call_command("seed_catalog")
    call_command("seed_catalog")

    assert Size.objects.count() == 9
    assert Size.objects.get(name="XS").sort_order == 1
    assert Color.objects.filter(name="Black").exists()
    assert list(Location.objects.values_list("code", "is_default")) == [("DISPLAY", True), ("LEMARI", False)]
