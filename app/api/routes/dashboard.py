"""Dashboard API route."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from app.db.connection import Database
from app.services.dashboard.exceptions import DashboardNotFound, InvalidDashboardRequest
from app.services.dashboard.service import DashboardService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api", tags=["dashboard"])


class DesiredOutcomes(BaseModel):
    """Outcome filters selecting the content-items view."""

    model_config = ConfigDict(populate_by_name=True)

    patient_stories: bool = Field(default=False, alias="patientStories")
    kol_interviews: bool = Field(default=False, alias="kolInterviews")


class DashboardRequest(BaseModel):
    """Request body for the dashboard endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    search_name: Optional[str] = Field(default=None, alias="searchName")
    content_type: Optional[str] = Field(default=None, alias="contentType")
    content_url: Optional[str] = Field(default=None, alias="contentUrl")
    desired_outcomes: Optional[DesiredOutcomes] = Field(default=None, alias="desiredOutcomes")


def get_database(request: Request) -> Database:
    """Database handle opened by the application lifespan."""
    return request.app.state.db


@router.post("/dashboard")
async def dashboard(
    body: DashboardRequest,
    database: Database = Depends(get_database),
) -> dict[str, Any]:
    """Aggregate counts, single-video analysis, or filtered content items.

    - `contentType` and `contentUrl` set: analysis for that video
    - `desiredOutcomes` with a filter set: matching analysed videos
    - otherwise: counts for `searchName`
    """
    outcomes = body.desired_outcomes or DesiredOutcomes()
    service = DashboardService(database)

    try:
        return await service.query(
            search_name=body.search_name,
            content_url=body.content_url,
            content_type=body.content_type,
            patient_stories=outcomes.patient_stories,
            kol_interviews=outcomes.kol_interviews,
        )
    except InvalidDashboardRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DashboardNotFound as e:
        logger.info("dashboard_not_found", search_name=body.search_name, content_url=body.content_url)
        raise HTTPException(status_code=404, detail=str(e))
