from src.users.models import User, UserRole
from src.users.schemas import UserSummary


__all__ = ["User", "UserRole", "UserSummary"]
