# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: project lifecycle, membership and audit trail endpoints.
Thin HTTP layer; authorization comes from the dependency layer.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from tracker.core.dependencies import (
    get_current_user,
    get_function_registry,
    get_project_service,
    require_global_admin,
    require_project_admin,
)
from tracker.models.domain import User
from tracker.schemas import (
    ActivityOut,
    EventsOut,
    FunctionAssignments,
    MemberAdd,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
)
from tracker.services.function_registry import FunctionRegistry
from tracker.services.project_service import (
    REASON_INVALID,
    REASON_NO_ADMIN,
    REASON_UNKNOWN_IDS,
    ProjectService,
)

router = APIRouter(prefix="/api/v1", tags=["Projects"])

REASSIGN_STATUS = {
    REASON_UNKNOWN_IDS: 404,
    REASON_NO_ADMIN: 409,
    REASON_INVALID: 422,
}


@router.post("/projects", status_code=201, response_model=ProjectOut)
def create_project(
    payload: ProjectCreate,
    user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
):
    """Create a project; the caller becomes its first (admin) member."""
    project = service.create(payload.model_dump(), founding_user=user)
    return ProjectOut.from_project(project)


@router.get("/projects", response_model=list[ProjectOut])
def list_projects(service: ProjectService = Depends(get_project_service)):
    return [ProjectOut.from_project(p) for p in service.list_projects()]


@router.get("/projects/{project_id}", response_model=ProjectOut)
def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    try:
        return ProjectOut.from_project(service.get_project(project_id))
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/projects/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    user: User = Depends(require_project_admin),
    service: ProjectService = Depends(get_project_service),
):
    try:
        project = service.update(project_id, payload.changes(), actor=user)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ProjectOut.from_project(project)


@router.delete("/projects/{project_id}")
def destroy_project(
    project_id: str,
    _admin: User = Depends(require_global_admin),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return service.destroy(project_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Membership ──

@router.post("/projects/{project_id}/members", status_code=201, response_model=ProjectOut)
def add_member(
    project_id: str,
    payload: MemberAdd,
    user: User = Depends(require_project_admin),
    service: ProjectService = Depends(get_project_service),
    registry: FunctionRegistry = Depends(get_function_registry),
):
    function_id = payload.function_id
    if function_id is None:
        default = registry.default_non_admin()
        if default is None:
            raise HTTPException(status_code=422, detail="function_id is required: no non-admin function defined")
        function_id = default.id
    try:
        project = service.add_member(project_id, payload.user_id, function_id, actor=user)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ProjectOut.from_project(project)


@router.delete("/projects/{project_id}/members/{member_id}", response_model=ProjectOut)
def remove_member(
    project_id: str,
    member_id: str,
    user: User = Depends(require_project_admin),
    service: ProjectService = Depends(get_project_service),
):
    try:
        project = service.remove_member(project_id, member_id, actor=user)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ProjectOut.from_project(project)


@router.put("/projects/{project_id}/members/functions")
def reassign_functions(
    project_id: str,
    payload: FunctionAssignments,
    user: User = Depends(require_project_admin),
    service: ProjectService = Depends(get_project_service),
):
    """Apply a batch of {member_id: function_id}; all-or-nothing."""
    try:
        result = service.reassign_functions(project_id, payload.assignments, actor=user)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not result.success:
        return JSONResponse(
            status_code=REASSIGN_STATUS.get(result.reason, 409),
            content=result.model_dump(),
        )
    return {
        "result": result.model_dump(),
        "project": ProjectOut.from_project(service.get_project(project_id)).model_dump(mode="json"),
    }


# ── Audit trail & statistics ──

@router.get("/projects/{project_id}/events", response_model=EventsOut)
def list_events(
    project_id: str,
    event_type: Optional[str] = Query(default=None, pattern="^(created|updated)$"),
    limit: Optional[int] = Query(default=None, ge=1),
    service: ProjectService = Depends(get_project_service),
):
    try:
        events = service.list_events(project_id, event_type=event_type, limit=limit)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return EventsOut(project_id=project_id, count=len(events), events=events)


@router.get("/projects/{project_id}/tags")
def get_tag_counts(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    try:
        project = service.get_project(project_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"project_id": project_id, "tag_counts": project.tag_counts}


@router.get("/projects/{project_id}/activity", response_model=ActivityOut)
def get_last_activity(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    try:
        return ActivityOut(project_id=project_id, last_activity_at=service.last_activity_at(project_id))
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
