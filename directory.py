"""
Directory service: branches, officers, branch content, donations, impact
stories, and the master admin's read-only views (audit log, search,
analytics, export).
"""

import os
import logging
from io import BytesIO
from datetime import datetime
from typing import List, Optional, Tuple
import pandas as pd
from sqlalchemy import update, desc, func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from models import (
    Branch, User, UserRole, Account, Activity, ActivityStatus, Resource, ResourceType,
    Donation, RegionalDonation, ImpactStory, AuditLog, Transaction,
    DonationApplication, ApplicationStatus
)
from errors import ValidationError, NotFound, DuplicateEmail
from auth import get_password_hash, get_user_by_email
from ledger import check_amount

logger = logging.getLogger(__name__)

MASTER_ADMIN_EMAIL = os.getenv("MASTER_ADMIN_EMAIL", "asmin@zion.com")
MASTER_ADMIN_PASSWORD = os.getenv("MASTER_ADMIN_PASSWORD", "asmin")

ANALYTICS_MONTHS = 6
LATEST_DONATIONS_LIMIT = 10
AUDIT_LOG_LIMIT = 100


def seed_master_admin(db: Session, email: str = MASTER_ADMIN_EMAIL, password: str = MASTER_ADMIN_PASSWORD) -> User:
    admin = get_user_by_email(db, email)
    if admin:
        return admin

    admin = User(
        email=email,
        hashed_password=get_password_hash(password),
        name="Master Admin",
        role=UserRole.MASTER_ADMIN
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Master admin created: {email}")
    return admin


# Branches

def list_branches(db: Session) -> List[Branch]:
    return db.query(Branch).order_by(Branch.id).all()


def get_branch(db: Session, branch_id: int) -> Branch:
    branch = db.get(Branch, branch_id)
    if branch is None:
        raise NotFound("Branch not found")
    return branch


def _claim_head_office(db: Session, branch: Branch):
    """Clear the flag everywhere else and set it here, in the caller's transaction."""
    db.flush()
    db.execute(
        update(Branch)
        .where(Branch.id != branch.id)
        .values(is_head_office=False)
    )
    branch.is_head_office = True


def create_branch(db: Session, region: str, location: str, is_head_office: bool = False, **fields) -> Branch:
    branch = Branch(region=region, location=location, is_head_office=False, **fields)
    db.add(branch)
    try:
        if is_head_office:
            _claim_head_office(db, branch)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(branch)
    logger.info(f"Branch {branch.id} ({branch.region}) created")
    return branch


def update_branch(db: Session, branch_id: int, region: str, location: str, is_head_office: bool,
                  officer_name: Optional[str] = None, officer_bio: Optional[str] = None,
                  officer_photos: Optional[List[str]] = None) -> Branch:
    branch = get_branch(db, branch_id)
    branch.region = region
    branch.location = location
    branch.officer_name = officer_name
    branch.officer_bio = officer_bio
    branch.officer_photos = officer_photos or []
    try:
        if is_head_office:
            _claim_head_office(db, branch)
        else:
            branch.is_head_office = False
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(branch)
    return branch


def update_branch_profile(db: Session, branch_id: int, officer_name: Optional[str],
                          officer_bio: Optional[str], officer_photo: Optional[str]) -> Branch:
    branch = get_branch(db, branch_id)
    branch.officer_name = officer_name
    branch.officer_bio = officer_bio
    branch.officer_photo = officer_photo
    db.commit()
    db.refresh(branch)
    return branch


def delete_branch(db: Session, branch_id: int):
    """
    Delete a branch together with its activities and resources.

    Affiliated users are detached (branch_id set to NULL), never deleted.
    """
    get_branch(db, branch_id)
    try:
        activities = db.query(Activity).filter(Activity.branch_id == branch_id).delete()
        resources = db.query(Resource).filter(Resource.branch_id == branch_id).delete()
        detached = db.query(User).filter(User.branch_id == branch_id).update({User.branch_id: None})
        db.query(Branch).filter(Branch.id == branch_id).delete()
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Branch {branch_id} deleted: {activities} activities, {resources} resources removed, "
        f"{detached} users detached"
    )


# Officers

def list_officers(db: Session) -> List[User]:
    return db.query(User).filter(User.role == UserRole.REGIONAL_OFFICER).order_by(User.id).all()


def get_officer(db: Session, officer_id: int) -> User:
    officer = db.get(User, officer_id)
    if officer is None or officer.role != UserRole.REGIONAL_OFFICER:
        raise NotFound("Officer not found")
    return officer


def create_officer(db: Session, name: str, email: str, password: str, branch_name: str,
                   is_head_office: bool = False) -> User:
    """Create a regional officer, finding their branch by region or creating it."""
    if get_user_by_email(db, email):
        raise DuplicateEmail()

    try:
        branch = db.query(Branch).filter(Branch.region == branch_name).first()
        if branch is None:
            branch = Branch(region=branch_name, location=branch_name, is_head_office=False)
            db.add(branch)
        if is_head_office:
            _claim_head_office(db, branch)
        db.flush()

        officer = User(
            name=name,
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.REGIONAL_OFFICER,
            branch_id=branch.id
        )
        db.add(officer)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    except Exception:
        db.rollback()
        raise

    db.refresh(officer)
    logger.info(f"Officer {officer.id} created for branch {branch.id}")
    return officer


def update_officer(db: Session, officer_id: int, name: str, email: str,
                   password: Optional[str] = None, branch_id: Optional[int] = None) -> User:
    """Omitted password or branch_id keep the stored values."""
    officer = get_officer(db, officer_id)
    if email != officer.email and get_user_by_email(db, email):
        raise DuplicateEmail()
    if branch_id is not None:
        get_branch(db, branch_id)

    officer.name = name
    officer.email = email
    if branch_id is not None:
        officer.branch_id = branch_id
    if password:
        officer.hashed_password = get_password_hash(password)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    db.refresh(officer)
    return officer


def delete_officer(db: Session, officer_id: int):
    officer = get_officer(db, officer_id)
    db.delete(officer)
    db.commit()
    logger.info(f"Officer {officer_id} deleted")


# Activities and resources

def create_activity(db: Session, branch_id: int, title: str, description: Optional[str]) -> Activity:
    get_branch(db, branch_id)
    activity = Activity(branch_id=branch_id, title=title, description=description, status=ActivityStatus.ACTIVE)
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def get_activity(db: Session, activity_id: int) -> Activity:
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise NotFound("Activity not found")
    return activity


def update_activity(db: Session, activity_id: int, title: str, description: Optional[str], status) -> Activity:
    activity = get_activity(db, activity_id)
    try:
        activity.status = ActivityStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown activity status '{status}'")
    activity.title = title
    activity.description = description
    db.commit()
    db.refresh(activity)
    return activity


def delete_activity(db: Session, activity_id: int):
    activity = get_activity(db, activity_id)
    db.delete(activity)
    db.commit()


def create_resource(db: Session, branch_id: int, name: str, type: str,
                    description: Optional[str], url: Optional[str]) -> Resource:
    get_branch(db, branch_id)
    try:
        resource_type = ResourceType(type)
    except ValueError:
        raise ValidationError(f"Unknown resource type '{type}'")
    resource = Resource(branch_id=branch_id, name=name, type=resource_type, description=description, url=url)
    db.add(resource)
    db.commit()
    db.refresh(resource)
    return resource


def get_resource(db: Session, resource_id: int) -> Resource:
    resource = db.get(Resource, resource_id)
    if resource is None:
        raise NotFound("Resource not found")
    return resource


def update_resource(db: Session, resource_id: int, name: str, type: str,
                    description: Optional[str], url: Optional[str]) -> Resource:
    resource = get_resource(db, resource_id)
    try:
        resource.type = ResourceType(type)
    except ValueError:
        raise ValidationError(f"Unknown resource type '{type}'")
    resource.name = name
    resource.description = description
    resource.url = url
    db.commit()
    db.refresh(resource)
    return resource


def delete_resource(db: Session, resource_id: int):
    resource = get_resource(db, resource_id)
    db.delete(resource)
    db.commit()


# Donations

def create_donation(db: Session, donor_name: Optional[str], amount: float, message: Optional[str],
                    is_anonymous: bool = False) -> Donation:
    amount = check_amount(amount)
    name = "Anonymous" if is_anonymous or not donor_name else donor_name
    donation = Donation(donor_name=name, amount=amount, message=message)
    db.add(donation)
    db.commit()
    db.refresh(donation)
    logger.info(f"Donation {donation.id} of {amount} received")
    return donation


def latest_donations(db: Session, limit: int = LATEST_DONATIONS_LIMIT) -> List[Donation]:
    return db.query(Donation).order_by(desc(Donation.created_at), desc(Donation.id)).limit(limit).all()


def create_regional_donation(db: Session, branch_id: int, donor_name: Optional[str], amount: float,
                             message: Optional[str], is_anonymous: bool = False) -> RegionalDonation:
    get_branch(db, branch_id)
    amount = check_amount(amount)
    donation = RegionalDonation(
        branch_id=branch_id,
        donor_name="Anonymous" if is_anonymous or not donor_name else donor_name,
        amount=amount,
        message=message,
        is_anonymous=is_anonymous
    )
    db.add(donation)
    db.commit()
    db.refresh(donation)
    return donation


def list_regional_donations(db: Session, branch_id: int) -> List[RegionalDonation]:
    return db.query(RegionalDonation).filter(
        RegionalDonation.branch_id == branch_id
    ).order_by(desc(RegionalDonation.created_at), desc(RegionalDonation.id)).all()


def export_donations(db: Session, format: str = "csv") -> Tuple[BytesIO, str, str]:
    """Export all donations as CSV or Excel. Returns (buffer, media type, filename)."""
    donations = db.query(Donation).order_by(desc(Donation.created_at)).all()

    data = []
    for donation in donations:
        data.append({
            "Donation ID": donation.id,
            "Donor Name": donation.donor_name,
            "Amount": donation.amount,
            "Message": donation.message or "",
            "Date": donation.created_at.strftime("%Y-%m-%d %H:%M:%S") if donation.created_at else ""
        })

    df = pd.DataFrame(data, columns=["Donation ID", "Donor Name", "Amount", "Message", "Date"])

    filename = f"donations_{datetime.now().strftime('%Y%m%d_%H%M%S')}.{format if format == 'csv' else 'xlsx'}"

    output = BytesIO()
    if format == "excel":
        df.to_excel(output, index=False, engine='openpyxl')
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        df.to_csv(output, index=False)
        media_type = "text/csv"
    output.seek(0)

    return output, media_type, filename


# Impact stories

def list_impact_stories(db: Session, approved_only: bool = True) -> List[ImpactStory]:
    query = db.query(ImpactStory)
    if approved_only:
        query = query.filter(ImpactStory.is_approved == True)  # noqa: E712
    return query.order_by(desc(ImpactStory.created_at), desc(ImpactStory.id)).all()


def get_impact_story(db: Session, story_id: int) -> ImpactStory:
    story = db.get(ImpactStory, story_id)
    if story is None:
        raise NotFound("Impact story not found")
    return story


def create_impact_story(db: Session, branch_id: Optional[int], title: str, story: str,
                        beneficiary_name: Optional[str], image: Optional[str]) -> ImpactStory:
    if branch_id is not None:
        get_branch(db, branch_id)
    impact_story = ImpactStory(
        branch_id=branch_id,
        title=title,
        story=story,
        beneficiary_name=beneficiary_name,
        image=image,
        is_approved=True
    )
    db.add(impact_story)
    db.commit()
    db.refresh(impact_story)
    return impact_story


def update_impact_story(db: Session, story_id: int, title: str, story: str,
                        beneficiary_name: Optional[str], image: Optional[str], is_approved: bool) -> ImpactStory:
    impact_story = get_impact_story(db, story_id)
    impact_story.title = title
    impact_story.story = story
    impact_story.beneficiary_name = beneficiary_name
    impact_story.image = image
    impact_story.is_approved = is_approved
    db.commit()
    db.refresh(impact_story)
    return impact_story


def delete_impact_story(db: Session, story_id: int) -> ImpactStory:
    impact_story = get_impact_story(db, story_id)
    db.delete(impact_story)
    db.commit()
    return impact_story


# Read-only views

def recent_audit_logs(db: Session, limit: int = AUDIT_LOG_LIMIT) -> List[dict]:
    rows = db.query(AuditLog, User.name).outerjoin(
        User, AuditLog.user_id == User.id
    ).order_by(desc(AuditLog.created_at), desc(AuditLog.id)).limit(limit).all()

    return [
        {
            "id": log.id,
            "user_id": log.user_id,
            "user_name": user_name,
            "action": log.action,
            "details": log.details,
            "date": log.created_at.isoformat() if log.created_at else None
        }
        for log, user_name in rows
    ]


def search(db: Session, q: Optional[str]) -> dict:
    if not q or not q.strip():
        raise ValidationError("Search query required")

    term = f"%{q.strip()}%"
    branches = db.query(Branch).filter(
        or_(Branch.region.ilike(term), Branch.location.ilike(term))
    ).all()
    users = db.query(User).filter(
        or_(User.name.ilike(term), User.email.ilike(term))
    ).all()
    donations = db.query(Donation).filter(
        or_(Donation.donor_name.ilike(term), Donation.message.ilike(term))
    ).order_by(desc(Donation.created_at)).limit(LATEST_DONATIONS_LIMIT).all()

    return {"branches": branches, "users": users, "donations": donations}


def monthly_donation_totals(db: Session, months: int = ANALYTICS_MONTHS, now: Optional[datetime] = None) -> List[dict]:
    """Donation totals per YYYY-MM for the last ``months`` months."""
    now = now or datetime.utcnow()
    cutoff = (pd.Timestamp(now) - pd.DateOffset(months=months)).to_pydatetime()

    rows = db.query(Donation.created_at, Donation.amount).filter(Donation.created_at >= cutoff).all()
    if not rows:
        return []

    df = pd.DataFrame([(row.created_at, row.amount) for row in rows], columns=["created_at", "amount"])
    df["month"] = pd.to_datetime(df["created_at"]).dt.strftime("%Y-%m")
    totals = df.groupby("month")["amount"].sum().sort_index()

    return [{"month": month, "total": float(total)} for month, total in totals.items()]


def analytics(db: Session) -> dict:
    def scalar(query):
        return query.scalar() or 0

    return {
        "total_donations": float(scalar(db.query(func.coalesce(func.sum(Donation.amount), 0)))),
        "total_regional_donations": float(scalar(db.query(func.coalesce(func.sum(RegionalDonation.amount), 0)))),
        "total_users": scalar(db.query(func.count(User.id)).filter(User.role == UserRole.USER)),
        "total_officers": scalar(db.query(func.count(User.id)).filter(User.role == UserRole.REGIONAL_OFFICER)),
        "total_branches": scalar(db.query(func.count(Branch.id))),
        "pending_applications": scalar(
            db.query(func.count(DonationApplication.id)).filter(
                DonationApplication.status == ApplicationStatus.PENDING
            )
        ),
        "approved_applications": scalar(
            db.query(func.count(DonationApplication.id)).filter(
                DonationApplication.status.in_([ApplicationStatus.REPLIED, ApplicationStatus.APPROVED])
            )
        ),
        "total_savings": float(scalar(db.query(func.coalesce(func.sum(Account.balance), 0)))),
        "monthly_donations": monthly_donation_totals(db)
    }


def master_overview(db: Session) -> dict:
    return {
        "donations": db.query(Donation).order_by(desc(Donation.created_at)).all(),
        "transactions": db.query(Transaction).order_by(desc(Transaction.created_at)).all(),
        "applications": db.query(DonationApplication).order_by(desc(DonationApplication.created_at)).all(),
        "users": db.query(User).order_by(User.id).all()
    }
