"""India-only location matching shared by external and internal job listings."""

ALLOWED_CITIES: tuple[str, ...] = (
    "Mumbai",
    "Delhi",
    "Bangalore",
    "Hyderabad",
    "Chennai",
    "Pune",
    "Noida",
    "Gurugram",
    "Kolkata",
    "Ahmedabad",
    "Jaipur",
    "Indore",
)

REMOTE_INDIA = "Remote India"
INDIA = "India"


def _match_city(lowered: str) -> str | None:
    # Whitelist order decides between several cities in one string.
    for city in ALLOWED_CITIES:
        if city.lower() in lowered:
            return city
    return None


def is_allowed_city(raw: str | None) -> bool:
    if not raw:
        return False
    return _match_city(raw.lower()) is not None


def is_india_location(raw: str | None) -> bool:
    if not raw:
        return False
    lowered = raw.lower()
    if "india" in lowered:
        return True
    return _match_city(lowered) is not None


def normalize_city(raw: str | None) -> str:
    """Map a free-text location onto a whitelist city, falling back to the input."""
    if not raw:
        return ""
    lowered = raw.lower()
    city = _match_city(lowered)
    if city is not None:
        return city
    if "remote" in lowered and "india" in lowered:
        return REMOTE_INDIA
    if "india" in lowered:
        return INDIA
    return raw
