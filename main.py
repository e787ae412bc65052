from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.orm import Session
from datetime import datetime
import logging
import os

from database import get_db, init_db, SessionLocal
from models import User, UserRole
from schemas import (
    UserRegister, UserLogin, ProfileUpdate, ForgotPassword, ResetPassword,
    AmountRequest, CollectRequest, AutoPaySettings,
    ApplicationCreate, ReplyRequest, StatusRequest, RegionalRequestCreate,
    BranchCreate, BranchUpdate, BranchProfileUpdate, OfficerCreate, OfficerUpdate,
    ActivityCreate, ActivityUpdate, ResourceCreate, ResourceUpdate, DonationCreate,
    ImpactStoryCreate, ImpactStoryUpdate,
    UserOut, AccountOut, TransactionOut, BranchOut, BranchDetail, ActivityOut, ResourceOut,
    ApplicationOut, RegionalRequestOut, DonationOut, RegionalDonationOut, ImpactStoryOut
)
from errors import AppError, NotFound
from auth import (
    get_current_user, require_officer, require_master_admin, ensure_branch_access,
    register_user, authenticate_user, issue_token_for, update_profile,
    create_password_reset, reset_password
)
from file_utils import (
    ensure_directories, get_file_path, save_images, resolve_image, resolve_images,
    delete_attachments
)
from security_middleware import (
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
    IPWhitelistMiddleware,
    parse_whitelist,
    setup_rate_limits,
    LOGIN_LIMIT,
    REGISTER_LIMIT,
    PASSWORD_RESET_LIMIT,
    PUBLIC_SUBMISSION_LIMIT
)
import auth
import ledger
import applications
import directory

logger = logging.getLogger(__name__)

# Lifespan event handler
from contextlib import asynccontextmanager


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up ASMIN Donation & Savings Platform...")

    # Create database tables
    init_db()

    # Ensure upload directories exist
    ensure_directories()

    # Create the master admin user
    db = SessionLocal()
    try:
        directory.seed_master_admin(db)
    finally:
        db.close()

    logger.info("Server ready to accept connections")

    yield

    logger.info("Shutting down server...")


app = FastAPI(
    title="ASMIN - Donation & Savings Platform",
    description="Donations, member savings and regional aid applications for Arise and Shine Ministries International",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None,  # Disable docs in production for security
    redoc_url=None  # Disable redoc in production for security
)

# Setup rate limiting
limiter = setup_rate_limits(app)

# Security Middleware
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

admin_whitelist = parse_whitelist(os.getenv("ADMIN_IP_WHITELIST"))
if admin_whitelist:
    app.add_middleware(IPWhitelistMiddleware, whitelist=admin_whitelist)

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# Error envelope: every failure is {"error": message}

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


def _format_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid input")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}" if location else message


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = "; ".join(_format_validation_error(error) for error in exc.errors())
    return JSONResponse(status_code=400, content={"error": message or "Invalid input"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _many(schema, items):
    return [schema.model_validate(item) for item in items]


# Auth endpoints

@app.post("/api/auth/register")
@limiter.limit(REGISTER_LIMIT)
async def register(request: Request, payload: UserRegister, db: Session = Depends(get_db)):
    """Register a member. Their savings account is opened at the same time."""
    user = register_user(db, payload.email, payload.password, payload.name)
    return {"success": True, "user_id": user.id}


@app.post("/api/auth/login")
@limiter.limit(LOGIN_LIMIT)
async def login(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Login endpoint with rate limiting to prevent brute force attacks."""
    user = authenticate_user(db, credentials.email, credentials.password)
    return {
        "success": True,
        "user": UserOut.model_validate(user),
        "access_token": issue_token_for(user),
        "token_type": "bearer"
    }


@app.post("/api/auth/forgot-password")
@limiter.limit(PASSWORD_RESET_LIMIT)
async def forgot_password(request: Request, payload: ForgotPassword, db: Session = Depends(get_db)):
    reset = create_password_reset(db, payload.email)
    response = {"success": True, "message": "Password reset link sent to email"}
    if auth.RESET_TOKEN_IN_RESPONSE:
        response["token"] = reset.reset_token
    else:
        logger.info(f"Password reset token for {reset.email}: {reset.reset_token}")
    return response


@app.post("/api/auth/reset-password")
async def reset_password_endpoint(payload: ResetPassword, db: Session = Depends(get_db)):
    reset_password(db, payload.token, payload.new_password)
    return {"success": True, "message": "Password reset successful"}


# Profile

@app.get("/api/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": UserOut.model_validate(current_user)}


@app.post("/api/profile/update")
async def update_profile_endpoint(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    photo = await resolve_image(payload.photo, "profiles")
    user = update_profile(
        db,
        current_user.id,
        current_password=payload.current_password,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        bio=payload.bio,
        photo=photo,
        new_password=payload.new_password
    )
    return {"success": True, "user": UserOut.model_validate(user)}


# Branches (public)

@app.get("/api/branches")
async def list_branches(db: Session = Depends(get_db)):
    return {"success": True, "branches": _many(BranchOut, directory.list_branches(db))}


@app.get("/api/branches/{branch_id}")
async def get_branch(branch_id: int, db: Session = Depends(get_db)):
    branch = directory.get_branch(db, branch_id)
    return {"success": True, "branch": BranchDetail.model_validate(branch)}


@app.post("/api/branches/{branch_id}/profile")
async def update_branch_profile(
    branch_id: int,
    payload: BranchProfileUpdate,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, branch_id)
    directory.get_branch(db, branch_id)
    photo = await resolve_image(payload.officer_photo, "branches")
    branch = directory.update_branch_profile(db, branch_id, payload.officer_name, payload.officer_bio, photo)
    return {"success": True, "branch": BranchOut.model_validate(branch)}


@app.post("/api/branches/{branch_id}/activities")
async def create_activity(
    branch_id: int,
    payload: ActivityCreate,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, branch_id)
    activity = directory.create_activity(db, branch_id, payload.title, payload.description)
    return {"success": True, "activity": ActivityOut.model_validate(activity)}


@app.put("/api/activities/{activity_id}")
async def update_activity(
    activity_id: int,
    payload: ActivityUpdate,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, directory.get_activity(db, activity_id).branch_id)
    activity = directory.update_activity(db, activity_id, payload.title, payload.description, payload.status)
    return {"success": True, "activity": ActivityOut.model_validate(activity)}


@app.delete("/api/activities/{activity_id}")
async def delete_activity(
    activity_id: int,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, directory.get_activity(db, activity_id).branch_id)
    directory.delete_activity(db, activity_id)
    return {"success": True}


@app.post("/api/branches/{branch_id}/resources")
async def create_resource(
    branch_id: int,
    payload: ResourceCreate,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, branch_id)
    resource = directory.create_resource(
        db, branch_id, payload.name, payload.type, payload.description, payload.url
    )
    return {"success": True, "resource": ResourceOut.model_validate(resource)}


@app.put("/api/resources/{resource_id}")
async def update_resource(
    resource_id: int,
    payload: ResourceUpdate,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, directory.get_resource(db, resource_id).branch_id)
    resource = directory.update_resource(
        db, resource_id, payload.name, payload.type, payload.description, payload.url
    )
    return {"success": True, "resource": ResourceOut.model_validate(resource)}


@app.delete("/api/resources/{resource_id}")
async def delete_resource(
    resource_id: int,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, directory.get_resource(db, resource_id).branch_id)
    directory.delete_resource(db, resource_id)
    return {"success": True}


@app.post("/api/branches/{branch_id}/donate")
@limiter.limit(PUBLIC_SUBMISSION_LIMIT)
async def donate_to_branch(request: Request, branch_id: int, payload: DonationCreate, db: Session = Depends(get_db)):
    donation = directory.create_regional_donation(
        db, branch_id, payload.donor_name, payload.amount, payload.message, payload.is_anonymous
    )
    return {"success": True, "donation": RegionalDonationOut.model_validate(donation)}


@app.get("/api/branches/{branch_id}/donations")
async def list_branch_donations(branch_id: int, db: Session = Depends(get_db)):
    donations = directory.list_regional_donations(db, branch_id)
    return {"success": True, "donations": _many(RegionalDonationOut, donations)}


@app.post("/api/branches/{branch_id}/request")
@limiter.limit(PUBLIC_SUBMISSION_LIMIT)
async def submit_regional_request(
    request: Request,
    branch_id: int,
    payload: RegionalRequestCreate,
    db: Session = Depends(get_db)
):
    help_request = applications.create_request(
        db, branch_id, payload.requester_name, payload.contact, payload.need_description
    )
    return {"success": True, "request": RegionalRequestOut.model_validate(help_request)}


@app.get("/api/branches/{branch_id}/requests")
async def list_regional_requests(
    branch_id: int,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, branch_id)
    requests = applications.list_branch_requests(db, branch_id)
    return {"success": True, "requests": _many(RegionalRequestOut, requests)}


@app.post("/api/branches/{branch_id}/apply")
@limiter.limit(PUBLIC_SUBMISSION_LIMIT)
async def apply_for_aid(
    request: Request,
    branch_id: int,
    payload: ApplicationCreate,
    db: Session = Depends(get_db)
):
    """Submit a vulnerable-person aid application with evidence images and a recommendation letter."""
    applications.get_branch_or_404(db, branch_id)
    applications.validate_submission(payload.images, payload.recommendation_letter)

    # Letter is stored last so paths[-1] is always the letter
    paths = await save_images(payload.images + [payload.recommendation_letter], "applications")
    fields = payload.dict(exclude={"images", "recommendation_letter"})
    try:
        application = applications.create_application(db, branch_id, paths[:-1], paths[-1], **fields)
    except Exception:
        delete_attachments(paths)
        raise

    return {"success": True, "application": ApplicationOut.model_validate(application)}


# Account & savings

@app.get("/api/account")
async def get_account(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    account = ledger.get_account(db, current_user.id)
    return {"success": True, "account": AccountOut.model_validate(account)}


@app.post("/api/account/deposit")
async def deposit(
    payload: AmountRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entry = ledger.deposit(db, current_user.id, payload.amount)
    account = ledger.get_account(db, current_user.id)
    return {
        "success": True,
        "transaction": TransactionOut.model_validate(entry),
        "balance": account.balance
    }


@app.post("/api/account/withdraw")
async def withdraw(
    payload: AmountRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entry = ledger.withdraw(db, current_user.id, payload.amount)
    account = ledger.get_account(db, current_user.id)
    return {
        "success": True,
        "transaction": TransactionOut.model_validate(entry),
        "balance": account.balance
    }


@app.post("/api/account/collect")
async def pay_collection(
    payload: CollectRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Pay the organizational collection fee from savings."""
    entry = ledger.collect(db, current_user.id, payload.amount)
    account = ledger.get_account(db, current_user.id)
    return {
        "success": True,
        "transaction": TransactionOut.model_validate(entry),
        "balance": account.balance
    }


@app.post("/api/account/settings")
async def account_settings(
    payload: AutoPaySettings,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    account = ledger.set_auto_pay(db, current_user.id, payload.auto_pay)
    return {"success": True, "account": AccountOut.model_validate(account)}


@app.get("/api/transactions")
async def transaction_history(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entries = ledger.list_transactions(db, current_user.id)
    return {"success": True, "transactions": _many(TransactionOut, entries)}


@app.get("/api/receipt/{transaction_id}")
async def receipt(
    transaction_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    owner_id = None if current_user.role == UserRole.MASTER_ADMIN else current_user.id
    return {"success": True, "receipt": ledger.build_receipt(db, transaction_id, owner_id=owner_id)}


# Regional officer dashboard

@app.get("/api/admin/regional/applications/{branch_id}")
async def branch_applications(
    branch_id: int,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    ensure_branch_access(current_user, branch_id)
    return {
        "success": True,
        "applications": _many(ApplicationOut, applications.list_branch_applications(db, branch_id))
    }


def _application_for_officer(db: Session, application_id: int, officer: User):
    application = applications.get_application(db, application_id)
    ensure_branch_access(officer, application.branch_id)
    return application


@app.post("/api/admin/regional/applications/{application_id}/reply")
async def reply_to_application(
    application_id: int,
    payload: ReplyRequest,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    application = _application_for_officer(db, application_id, current_user)
    application = applications.reply(db, application, payload.reply)
    return {"success": True, "application": ApplicationOut.model_validate(application)}


@app.post("/api/admin/regional/applications/{application_id}/forward")
async def forward_application(
    application_id: int,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    application = _application_for_officer(db, application_id, current_user)
    application = applications.forward(db, application)
    return {"success": True, "application": ApplicationOut.model_validate(application)}


@app.post("/api/admin/regional/applications/{application_id}/status")
async def set_application_status(
    application_id: int,
    payload: StatusRequest,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    application = _application_for_officer(db, application_id, current_user)
    application = applications.set_status(db, application, payload.status)
    return {"success": True, "application": ApplicationOut.model_validate(application)}


@app.put("/api/admin/regional/requests/{request_id}")
async def update_regional_request(
    request_id: int,
    payload: StatusRequest,
    current_user: User = Depends(require_officer),
    db: Session = Depends(get_db)
):
    help_request = applications.get_request(db, request_id)
    ensure_branch_access(current_user, help_request.branch_id)
    help_request = applications.update_request_status(db, help_request, payload.status)
    return {"success": True, "request": RegionalRequestOut.model_validate(help_request)}


# Master admin dashboard

@app.get("/api/admin/master/all-activities")
async def master_overview(current_user: User = Depends(require_master_admin), db: Session = Depends(get_db)):
    overview = directory.master_overview(db)
    return {
        "success": True,
        "donations": _many(DonationOut, overview["donations"]),
        "transactions": _many(TransactionOut, overview["transactions"]),
        "applications": _many(ApplicationOut, overview["applications"]),
        "users": _many(UserOut, overview["users"])
    }


@app.get("/api/admin/master/officers")
async def list_officers(current_user: User = Depends(require_master_admin), db: Session = Depends(get_db)):
    return {"success": True, "officers": _many(UserOut, directory.list_officers(db))}


@app.post("/api/admin/master/officers")
async def create_officer(
    payload: OfficerCreate,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    officer = directory.create_officer(
        db, payload.name, payload.email, payload.password, payload.branch_name, payload.is_head_office
    )
    return {"success": True, "officer": UserOut.model_validate(officer)}


@app.put("/api/admin/master/officers/{officer_id}")
async def update_officer(
    officer_id: int,
    payload: OfficerUpdate,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    officer = directory.update_officer(
        db, officer_id, payload.name, payload.email, payload.password, payload.branch_id
    )
    return {"success": True, "officer": UserOut.model_validate(officer)}


@app.delete("/api/admin/master/officers/{officer_id}")
async def delete_officer(
    officer_id: int,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    directory.delete_officer(db, officer_id)
    return {"success": True}


@app.get("/api/admin/master/branches")
async def master_branches(current_user: User = Depends(require_master_admin), db: Session = Depends(get_db)):
    return {"success": True, "branches": _many(BranchDetail, directory.list_branches(db))}


@app.post("/api/admin/master/branches")
async def create_branch(
    payload: BranchCreate,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    photos = await resolve_images(payload.officer_photos, "branches")
    branch = directory.create_branch(
        db,
        payload.region,
        payload.location,
        is_head_office=payload.is_head_office,
        officer_name=payload.officer_name,
        officer_bio=payload.officer_bio,
        officer_photos=photos
    )
    return {"success": True, "branch": BranchOut.model_validate(branch)}


@app.put("/api/admin/master/branches/{branch_id}")
async def update_branch(
    branch_id: int,
    payload: BranchUpdate,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    directory.get_branch(db, branch_id)
    photos = await resolve_images(payload.officer_photos, "branches")
    branch = directory.update_branch(
        db,
        branch_id,
        payload.region,
        payload.location,
        payload.is_head_office,
        officer_name=payload.officer_name,
        officer_bio=payload.officer_bio,
        officer_photos=photos
    )
    return {"success": True, "branch": BranchOut.model_validate(branch)}


@app.delete("/api/admin/master/branches/{branch_id}")
async def delete_branch(
    branch_id: int,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    directory.delete_branch(db, branch_id)
    return {"success": True}


@app.get("/api/admin/master/impact-stories")
async def all_impact_stories(current_user: User = Depends(require_master_admin), db: Session = Depends(get_db)):
    stories = directory.list_impact_stories(db, approved_only=False)
    return {"success": True, "stories": _many(ImpactStoryOut, stories)}


@app.post("/api/admin/master/impact-stories")
async def create_impact_story(
    payload: ImpactStoryCreate,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    image = await resolve_image(payload.image, "stories")
    story = directory.create_impact_story(
        db, payload.branch_id, payload.title, payload.story, payload.beneficiary_name, image
    )
    return {"success": True, "story": ImpactStoryOut.model_validate(story)}


@app.put("/api/admin/master/impact-stories/{story_id}")
async def update_impact_story(
    story_id: int,
    payload: ImpactStoryUpdate,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    directory.get_impact_story(db, story_id)
    image = await resolve_image(payload.image, "stories")
    story = directory.update_impact_story(
        db, story_id, payload.title, payload.story, payload.beneficiary_name, image, payload.is_approved
    )
    return {"success": True, "story": ImpactStoryOut.model_validate(story)}


@app.delete("/api/admin/master/impact-stories/{story_id}")
async def delete_impact_story(
    story_id: int,
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    story = directory.delete_impact_story(db, story_id)
    if story.image:
        delete_attachments([story.image])
    return {"success": True}


@app.get("/api/admin/master/audit-logs")
async def audit_logs(current_user: User = Depends(require_master_admin), db: Session = Depends(get_db)):
    return {"success": True, "logs": directory.recent_audit_logs(db)}


@app.get("/api/admin/master/analytics")
async def analytics(current_user: User = Depends(require_master_admin), db: Session = Depends(get_db)):
    return {"success": True, **directory.analytics(db)}


@app.get("/api/admin/master/donations/export")
async def export_donations(
    format: str = Query("csv", pattern="^(csv|excel)$"),
    current_user: User = Depends(require_master_admin),
    db: Session = Depends(get_db)
):
    """Export donations as CSV or Excel."""
    output, media_type, filename = directory.export_donations(db, format)
    return StreamingResponse(
        output,
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename={filename}"
        }
    )


# Public donations, stories and search

@app.get("/api/donations")
async def latest_donations(db: Session = Depends(get_db)):
    return {"success": True, "donations": _many(DonationOut, directory.latest_donations(db))}


@app.post("/api/donations")
@limiter.limit(PUBLIC_SUBMISSION_LIMIT)
async def create_donation(request: Request, payload: DonationCreate, db: Session = Depends(get_db)):
    donation = directory.create_donation(
        db, payload.donor_name, payload.amount, payload.message, payload.is_anonymous
    )
    return {"success": True, "donation": DonationOut.model_validate(donation)}


@app.get("/api/impact-stories")
async def impact_stories(db: Session = Depends(get_db)):
    return {"success": True, "stories": _many(ImpactStoryOut, directory.list_impact_stories(db))}


@app.get("/api/search")
async def search(q: str = Query(None), db: Session = Depends(get_db)):
    results = directory.search(db, q)
    return {
        "success": True,
        "branches": _many(BranchOut, results["branches"]),
        "users": [
            {"id": user.id, "name": user.name, "email": user.email, "role": user.role.value}
            for user in results["users"]
        ],
        "donations": _many(DonationOut, results["donations"])
    }


# Serve stored attachments
@app.get("/api/files/{file_path:path}")
async def get_attachment(file_path: str):
    full_path = get_file_path(file_path)
    if not full_path:
        raise NotFound("File not found")
    return FileResponse(full_path)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
