# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Function registry: global role definitions shared by all projects.
Owns the registry-wide lock that serializes admin-flag rewrites against
role-assignment operations.
"""

import threading
from typing import Iterable, Optional

from tracker.core.config import settings
from tracker.core.exceptions import RecordInvalid
from tracker.core.logging import get_logger
from tracker.metrics import ADMIN_FLAG_REWRITES
from tracker.models.domain import Function
from tracker.repositories.function_repository import FunctionRepository

logger = get_logger(__name__)


class FunctionRegistry:
    """Business logic for the global function registry."""

    def __init__(self, function_repo: FunctionRepository) -> None:
        self._functions = function_repo
        self._lock = threading.RLock()

    def exclusive(self) -> threading.RLock:
        """Lock scope shared by flag rewrites and function reassignments."""
        return self._lock

    # ── Commands ──

    def create_function(self, name: str, is_admin: bool = False) -> Function:
        name = (name or "").strip()
        if not name:
            raise RecordInvalid({"name": ["can't be blank"]})
        with self._lock:
            if self._functions.name_taken(name):
                raise RecordInvalid({"name": ["has already been taken"]})
            function = self._functions.create(Function(name=name, is_admin=is_admin))
        logger.info("Function created: name=%s, is_admin=%s", name, is_admin)
        return function

    def set_admin_flags(self, admin_function_ids: Iterable[str]) -> list[Function]:
        """Flag exactly the given functions as admin; every other one loses the flag."""
        wanted = set(admin_function_ids)
        with self._lock:
            functions = self._functions.set_admin_flags(wanted)
        ADMIN_FLAG_REWRITES.inc()
        unknown = wanted - {f.id for f in functions}
        if unknown:
            logger.warning("Admin flag rewrite ignored unknown ids: %s", sorted(unknown))
        logger.info(
            "Admin flags rewritten: admin=%s",
            [f.name for f in functions if f.is_admin],
        )
        return functions

    def seed_defaults(self) -> None:
        """Create the default admin and member functions on an empty registry."""
        with self._lock:
            if self._functions.count() > 0:
                return
            self._functions.create(Function(name=settings.DEFAULT_ADMIN_FUNCTION, is_admin=True))
            self._functions.create(Function(name=settings.DEFAULT_MEMBER_FUNCTION, is_admin=False))
        logger.info("Seeded default functions")

    # ── Queries ──

    def default_admin(self) -> Optional[Function]:
        return self._functions.first_with_flag(True)

    def default_non_admin(self) -> Optional[Function]:
        return self._functions.first_with_flag(False)

    def get_function(self, function_id: str) -> Function:
        function = self._functions.get(function_id)
        if function is None:
            raise KeyError(f"Function {function_id} not found")
        return function

    def functions_by_ids(self, function_ids: Iterable[str]) -> dict[str, Function]:
        return self._functions.get_many(function_ids)

    def list_functions(self) -> list[Function]:
        return self._functions.list_all()
