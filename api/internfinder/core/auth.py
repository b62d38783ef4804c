from dataclasses import dataclass


@dataclass(slots=True)
class CurrentUser:
    """Identity resolved from a verified bearer token."""

    user_id: str
    email: str | None = None
    role: str = "user"


def parse_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", maxsplit=1)[1].strip()
    return token or None
