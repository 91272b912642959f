# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: milestones and their current / outdated / upcoming buckets."""

from fastapi import APIRouter, Depends, HTTPException

from tracker.core.dependencies import (
    get_current_user,
    get_milestone_service,
    get_project_service,
    is_project_admin,
    require_project_admin,
)
from tracker.models.domain import Milestone, User
from tracker.schemas import MilestoneCreate, MilestonesOut
from tracker.services.milestones import MilestoneService
from tracker.services.project_service import ProjectService

router = APIRouter(prefix="/api/v1", tags=["Milestones"])


@router.post("/projects/{project_id}/milestones", status_code=201, response_model=Milestone)
def create_milestone(
    project_id: str,
    payload: MilestoneCreate,
    _user: User = Depends(require_project_admin),
    service: MilestoneService = Depends(get_milestone_service),
):
    try:
        return service.create_milestone(
            project_id,
            name=payload.name,
            expected_at=payload.expected_at,
            description=payload.description,
        )
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/projects/{project_id}/milestones", response_model=MilestonesOut)
def classify_milestones(
    project_id: str,
    service: MilestoneService = Depends(get_milestone_service),
):
    """Milestones grouped into current, outdated, upcoming and undated."""
    try:
        buckets = service.classify(project_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MilestonesOut(**buckets.model_dump())


@router.delete("/milestones/{milestone_id}")
def delete_milestone(
    milestone_id: str,
    user: User = Depends(get_current_user),
    service: MilestoneService = Depends(get_milestone_service),
    projects: ProjectService = Depends(get_project_service),
):
    try:
        milestone = service.get_milestone(milestone_id)
        if not is_project_admin(user, milestone.project_id, projects):
            raise HTTPException(status_code=403, detail="Project admin rights required")
        return service.delete_milestone(milestone_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/milestones/{milestone_id}/tags")
def milestone_tag_counts(
    milestone_id: str,
    service: MilestoneService = Depends(get_milestone_service),
):
    try:
        return {"milestone_id": milestone_id, "tag_counts": service.milestone_tag_counts(milestone_id)}
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
