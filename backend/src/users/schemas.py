from src.schemas import APIModel


class UserSummary(APIModel):
    """Public author/participant fields embedded in other responses."""

    id: int
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None
