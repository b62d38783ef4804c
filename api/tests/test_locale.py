import pytest

from internfinder.core.locale import ALLOWED_CITIES, is_allowed_city, is_india_location, normalize_city


@pytest.mark.parametrize("raw", ["India", "remote - INDIA", "Anywhere in india", "Bharat, India (hybrid)"])
def test_is_india_location_accepts_any_mention_of_india(raw: str) -> None:
    assert is_india_location(raw) is True


@pytest.mark.parametrize("city", ALLOWED_CITIES)
def test_whitelisted_city_is_india_and_normalizes_to_itself(city: str) -> None:
    raw = f"Office in {city.upper()} (hybrid)"
    assert is_allowed_city(raw) is True
    assert is_india_location(raw) is True
    assert normalize_city(raw) == city


def test_normalize_city_prefers_whitelist_over_generic_fallbacks() -> None:
    assert normalize_city("Remote, India") == "Remote India"
    assert normalize_city("Pune, India") == "Pune"
    assert normalize_city("India") == "India"


def test_normalize_city_uses_whitelist_order_when_two_cities_match() -> None:
    assert normalize_city("Chennai or Mumbai") == "Mumbai"
    assert normalize_city("Noida / Delhi NCR") == "Delhi"


def test_non_india_location_passes_through_unchanged() -> None:
    assert is_india_location("Berlin, Germany") is False
    assert normalize_city("Berlin, Germany") == "Berlin, Germany"


@pytest.mark.parametrize("raw", ["", None])
def test_empty_location_is_not_india(raw: str | None) -> None:
    assert is_india_location(raw) is False
    assert is_allowed_city(raw) is False
    assert normalize_city(raw) == ""
