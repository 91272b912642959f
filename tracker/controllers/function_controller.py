# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: global function (role) registry.
Writes are reserved to global admins.
"""

from fastapi import APIRouter, Depends

from tracker.core.dependencies import get_function_registry, require_global_admin
from tracker.models.domain import User
from tracker.schemas import AdminFlagsUpdate, FunctionCreate, FunctionOut
from tracker.services.function_registry import FunctionRegistry

router = APIRouter(prefix="/api/v1", tags=["Functions"])


@router.post("/functions", status_code=201, response_model=FunctionOut)
def create_function(
    payload: FunctionCreate,
    _admin: User = Depends(require_global_admin),
    registry: FunctionRegistry = Depends(get_function_registry),
):
    return registry.create_function(name=payload.name, is_admin=payload.is_admin)


@router.get("/functions", response_model=list[FunctionOut])
def list_functions(registry: FunctionRegistry = Depends(get_function_registry)):
    return registry.list_functions()


@router.put("/functions/admin-flags", response_model=list[FunctionOut])
def update_admin_flags(
    payload: AdminFlagsUpdate,
    _admin: User = Depends(require_global_admin),
    registry: FunctionRegistry = Depends(get_function_registry),
):
    """Flag exactly the listed functions as admin; all others lose the flag."""
    return registry.set_admin_flags(payload.admin_function_ids)
