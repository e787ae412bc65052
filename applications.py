"""
Aid application review workflow and regional help requests.
"""

import logging
from typing import List, Optional
from sqlalchemy import desc
from sqlalchemy.orm import Session

from models import DonationApplication, ApplicationStatus, Branch, RegionalRequest
from errors import ValidationError, NotFound, InvalidTransition

logger = logging.getLogger(__name__)

MIN_EVIDENCE_IMAGES = 3

# action -> (allowed source states or None for any, allowed targets).
# set_status is the officer's manual override and may record any working state,
# forwarded included. forward is the escalation action and only fires once, from pending.
TRANSITIONS = {
    "set_status": (None, {
        ApplicationStatus.REVIEWED,
        ApplicationStatus.FORWARDED,
        ApplicationStatus.REPLIED,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    }),
    "reply": (None, {ApplicationStatus.REPLIED}),
    "forward": ({ApplicationStatus.PENDING}, {ApplicationStatus.FORWARDED}),
}


def parse_status(value) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown status '{value}'")


def check_transition(action: str, current: ApplicationStatus, target: ApplicationStatus):
    sources, targets = TRANSITIONS[action]
    if sources is not None and current not in sources:
        raise InvalidTransition(f"Cannot {action.replace('_', ' ')} an application that is {current.value}")
    if target not in targets:
        raise InvalidTransition(f"Cannot {action.replace('_', ' ')} to {target.value}")


def validate_submission(images: Optional[List[str]], recommendation_letter: Optional[str]):
    """Runs before anything is stored."""
    if not images or len(images) < MIN_EVIDENCE_IMAGES:
        raise ValidationError(f"At least {MIN_EVIDENCE_IMAGES} evidence images are required")
    if any(not image or not image.strip() for image in images):
        raise ValidationError("Evidence images cannot be empty")
    if not recommendation_letter or not recommendation_letter.strip():
        raise ValidationError("A chairperson recommendation letter is required")


def get_branch_or_404(db: Session, branch_id: int) -> Branch:
    branch = db.get(Branch, branch_id)
    if branch is None:
        raise NotFound("Branch not found")
    return branch


def create_application(db: Session, branch_id: int, image_paths: List[str], letter_path: str, **fields) -> DonationApplication:
    """Insert an application whose attachments are already stored."""
    application = DonationApplication(
        branch_id=branch_id,
        images=image_paths,
        recommendation_letter=letter_path,
        status=ApplicationStatus.PENDING,
        **fields
    )
    db.add(application)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(application)

    logger.info(f"Application {application.id} submitted to branch {branch_id}")
    return application


def get_application(db: Session, application_id: int) -> DonationApplication:
    application = db.get(DonationApplication, application_id)
    if application is None:
        raise NotFound("Application not found")
    return application


def list_branch_applications(db: Session, branch_id: int) -> List[DonationApplication]:
    return db.query(DonationApplication).filter(
        DonationApplication.branch_id == branch_id
    ).order_by(desc(DonationApplication.created_at), desc(DonationApplication.id)).all()


def _apply(db: Session, application: DonationApplication, action: str, target: ApplicationStatus, reply: Optional[str] = None):
    check_transition(action, application.status, target)

    previous = application.status
    application.status = target
    if reply is not None:
        application.officer_reply = reply
    # Status and reply go out in the same UPDATE
    db.commit()
    db.refresh(application)

    logger.info(f"Application {application.id}: {previous.value} -> {target.value} ({action})")
    return application


def set_status(db: Session, application: DonationApplication, status) -> DonationApplication:
    return _apply(db, application, "set_status", parse_status(status))


def reply(db: Session, application: DonationApplication, text: str) -> DonationApplication:
    if not text or not text.strip():
        raise ValidationError("Reply text is required")
    return _apply(db, application, "reply", ApplicationStatus.REPLIED, reply=text)


def forward(db: Session, application: DonationApplication) -> DonationApplication:
    return _apply(db, application, "forward", ApplicationStatus.FORWARDED)


# Regional requests

def create_request(db: Session, branch_id: int, requester_name: str, contact: str, need_description: str) -> RegionalRequest:
    get_branch_or_404(db, branch_id)
    request = RegionalRequest(
        branch_id=branch_id,
        requester_name=requester_name,
        contact=contact,
        need_description=need_description
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


def list_branch_requests(db: Session, branch_id: int) -> List[RegionalRequest]:
    return db.query(RegionalRequest).filter(
        RegionalRequest.branch_id == branch_id
    ).order_by(desc(RegionalRequest.created_at), desc(RegionalRequest.id)).all()


def get_request(db: Session, request_id: int) -> RegionalRequest:
    request = db.get(RegionalRequest, request_id)
    if request is None:
        raise NotFound("Request not found")
    return request


def update_request_status(db: Session, request: RegionalRequest, status: str) -> RegionalRequest:
    if not status or not status.strip():
        raise ValidationError("Status is required")
    request.status = status.strip()
    db.commit()
    db.refresh(request)
    return request
