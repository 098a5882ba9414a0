from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from tenderchain.database import get_db
from tenderchain.schemas import ProjectCreate, ProjectResponse, ProjectCreatedResponse, ProjectListResponse
from tenderchain.crud import create_project, get_project, list_projects
from tenderchain.auth import AuthContext, require_tender
from tenderchain.matching import get_interested_bidders
from tenderchain.models import Project, ProjectStatus, UserType, BidderType, NotificationType
from tenderchain.notifications import create_notification, create_bulk_notifications
from tenderchain import mailer
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


def to_project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        title=project.title,
        description=project.description,
        budget=project.budget,
        location=project.location,
        deadline=project.deadline,
        category=project.category,
        duration=project.duration,
        specifications=project.specifications,
        requirements=project.requirements or [],
        documents=project.documents or [],
        has_files=bool(project.has_files),
        status=project.status,
        bid_count=project.bid_count or 0,
        progress=project.progress or 0,
        tender_id=project.tender_id,
        tender_company=project.tender_company,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def notify_interested_bidders(db: Session, project: Project) -> int:
    bidder_ids = get_interested_bidders(db, project.category, project.specifications)
    if not bidder_ids:
        return 0
    create_bulk_notifications(
        db,
        bidder_ids,
        NotificationType.NEW_TENDER_AVAILABLE,
        "New Tender Available",
        f'A new tender "{project.title}" in {project.category} category is now available. '
        f"Budget: ${project.budget:,.2f}",
        {"projectId": str(project.id)},
    )
    return len(bidder_ids)


@router.get("", response_model=ProjectListResponse)
def list_projects_endpoint(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    category: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    user_type: Optional[UserType] = Query(None, alias="userType"),
    bidder_type: Optional[BidderType] = Query(None, alias="bidderType"),
    db: Session = Depends(get_db),
):
    filtered = user_type == UserType.BIDDER and bidder_type is not None
    projects = list_projects(
        db,
        status=status_filter,
        category=category,
        bidder_type=bidder_type if filtered else None,
        limit=limit,
    )
    return ProjectListResponse(
        projects=[to_project_response(p) for p in projects],
        filtered=filtered,
        filter_type=bidder_type,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project_endpoint(project_id: int, db: Session = Depends(get_db)):
    project = get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return to_project_response(project)


@router.post("", response_model=ProjectCreatedResponse, response_model_exclude_none=True)
def create_project_endpoint(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_tender),
):
    if not payload.title or not payload.description or not payload.budget \
            or not payload.deadline or not payload.category:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    project = create_project(
        db,
        tender_id=context.user_id,
        tender_company=context.company_name,
        title=payload.title,
        description=payload.description,
        budget=float(payload.budget),
        location=payload.location,
        deadline=payload.deadline,
        category=payload.category,
        duration=payload.duration,
        specifications=payload.specifications,
        requirements=payload.requirements or [],
        documents=payload.documents or [],
        has_files=bool(payload.has_files),
    )
    project_id = project.id
    logger.info("Project %s created by tender %s", project_id, context.user_id)

    warnings = []
    try:
        create_notification(
            db,
            context.user_id,
            NotificationType.PROJECT_CREATED,
            "Project Created Successfully",
            f'Your project "{project.title}" has been created and is now open for bids.',
            {"projectId": str(project_id)},
        )
    except mailer.MailerError as exc:
        logger.error("Creator notification for project %s stored but email failed: %s", project_id, exc)
        warnings.append("Creator notification email failed")
    except Exception as exc:
        db.rollback()
        logger.error("Failed to notify creator of project %s: %s", project_id, exc)
        warnings.append("Creator notification failed")

    try:
        notified = notify_interested_bidders(db, project)
        logger.info("Notified %d bidders about project %s", notified, project_id)
    except Exception:
        db.rollback()
        logger.exception("Error sending notifications to bidders for project %s", project_id)
        warnings.append("Bidder notifications failed")

    return ProjectCreatedResponse(
        message="Project created successfully",
        project_id=str(project_id),
        warning="; ".join(warnings) or None,
    )
