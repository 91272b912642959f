# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Service: minimal user directory (login + global-admin flag)."""

from tracker.core.exceptions import RecordInvalid
from tracker.core.logging import get_logger
from tracker.models.domain import User
from tracker.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class UserService:
    def __init__(self, user_repo: UserRepository) -> None:
        self._users = user_repo

    def create_user(self, login: str, global_admin: bool = False) -> User:
        login = (login or "").strip()
        if not login:
            raise RecordInvalid({"login": ["can't be blank"]})
        if self._users.login_taken(login):
            raise RecordInvalid({"login": ["has already been taken"]})
        user = self._users.create(User(login=login, global_admin=global_admin))
        logger.info("User created: login=%s, global_admin=%s", login, global_admin)
        return user

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise KeyError(f"User {user_id} not found")
        return user

    def find_user(self, user_id: str):
        return self._users.get(user_id)

    def list_users(self) -> list[User]:
        return self._users.list_all()
