# gighire/main.py
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import crud, models
from .application_routes import router as application_router
from .applications import ApplicationService
from .auth import authenticate_user, get_current_actor, get_current_user
from .billing import UsageLedger
from .config import settings
from .database import get_db
from .dependencies import get_application_service
from .errors import DomainError, Forbidden
from .identity import Actor, IdentityResolver
from .interview_routes import router as interview_router
from .job_repository import JobRepository, missing_fields
from .logging_config import configure_logging
from .schemas import BlockedSeekerOut, BlockSeekerIn, JobCreate, JobOut, JobStatusUpdate, ReasonIn, Token, UserCreate, UserOut, envelope
from .token import create_access_token

configure_logging()

app = FastAPI(title="gighire")
app.include_router(application_router)
app.include_router(interview_router)


# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    from .database import engine, Base
    # Create tables if they don't exist
    Base.metadata.create_all(bind=engine)


# --- error envelope ---

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    body = envelope(exc.message, errors=exc.errors, success=False)
    if getattr(exc, "conflicts", None) is not None:
        body["data"] = {"conflicts": exc.conflicts}
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=envelope("Validation failed", errors=errors, success=False),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(str(exc.detail), success=False),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    body = envelope("Internal server error", success=False)
    if settings.DEBUG:
        body["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


@app.get("/health", tags=["monitoring"])
def health_check(db: Session = Depends(get_db)):
    """
    Checks if the application is healthy, including the database connection.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "ok"}
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection error"
        )


# --- auth ---

@app.post("/api/register", response_model=UserOut, status_code=status.HTTP_201_CREATED, tags=["auth"])
def register_api(payload: UserCreate, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    user, profile = crud.register_account(
        db,
        payload.email,
        payload.password,
        payload.user_type,
        full_name=payload.full_name,
        phone=payload.phone,
        company_name=payload.company_name,
    )
    logger.info(f"Registered {payload.user_type} account {user.id}")
    return UserOut(id=user.id, email=user.email, user_type=user.user_type, created_at=user.created_at, profile_id=profile.id)


@app.post("/api/login", response_model=Token, tags=["auth"])
def login_api(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = authenticate_user(db, form.username, form.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token(subject=user.id, user_type=user.user_type)
    return {"access_token": token, "token_type": "bearer"}


@app.get("/api/me", response_model=UserOut, tags=["auth"])
def me(current_user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile_id = IdentityResolver(db).resolve(Actor.from_user(current_user))
    return UserOut(
        id=current_user.id,
        email=current_user.email,
        user_type=current_user.user_type,
        created_at=current_user.created_at,
        profile_id=profile_id,
    )


# --- jobs ---

@app.post("/api/jobs", status_code=status.HTTP_201_CREATED, tags=["jobs"])
def create_job(payload: JobCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    if not actor.is_company:
        raise Forbidden("Only company accounts can create jobs")
    company = IdentityResolver(db).company(actor)
    job = JobRepository(db).create(company, actor.account_id, **payload.model_dump())
    db.commit()
    data = JobOut.model_validate(job).model_dump(mode="json", by_alias=True)
    data["missingFields"] = missing_fields(job)
    return envelope("Job created successfully", data)


@app.get("/api/jobs/{job_id}", tags=["jobs"])
def get_job(job_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    jobs = JobRepository(db)
    job = jobs.require(job_id)
    if job.job_status != "published":
        if not actor.is_company:
            raise Forbidden("This job is not available")
        # drafts and paused jobs are visible to their owner only
        jobs.require_owned(actor, job_id, action="view")
    elif not actor.is_company:
        jobs.increment_views(job.id)
        db.commit()
    return envelope("Job retrieved successfully", JobOut.model_validate(job))


@app.put("/api/jobs/{job_id}/publish", tags=["jobs"])
def publish_job(job_id: str, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    job, company = JobRepository(db).require_owned(actor, job_id)
    try:
        JobRepository(db).publish(job, company, UsageLedger(db))
        db.commit()
    except DomainError:
        db.rollback()
        raise
    return envelope("Job published successfully", JobOut.model_validate(job))


@app.put("/api/jobs/{job_id}/status", tags=["jobs"])
def set_job_status(
    job_id: str,
    payload: JobStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    job, _ = JobRepository(db).require_owned(actor, job_id)
    JobRepository(db).set_status(job, payload.job_status)
    db.commit()
    return envelope(f"Job {payload.job_status}", JobOut.model_validate(job))


# --- companies ---

@app.get("/api/companies/me/usage", tags=["companies"])
def company_usage(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    if not actor.is_company:
        raise Forbidden("Only company accounts have usage")
    company = IdentityResolver(db).company(actor)
    return envelope("Usage retrieved successfully", jsonable_encoder(UsageLedger(db).summary(company)))


@app.get("/api/companies/me/blocked-seekers", tags=["companies"])
def list_blocked_seekers(
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    blocks = service.list_blocked_seekers(actor)
    return envelope("Blocked seekers retrieved successfully", [BlockedSeekerOut.model_validate(b) for b in blocks])


@app.post("/api/companies/me/blocked-seekers", status_code=status.HTTP_201_CREATED, tags=["companies"])
def block_seeker(
    payload: BlockSeekerIn,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    block = service.block_seeker(actor, payload.seeker_id, reason=payload.reason)
    return envelope("Seeker blocked successfully", BlockedSeekerOut.model_validate(block))


@app.delete("/api/companies/me/blocked-seekers/{seeker_id}", tags=["companies"])
def unblock_seeker(
    seeker_id: str,
    payload: ReasonIn | None = None,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service),
):
    block = service.unblock_seeker(actor, seeker_id, reason=payload.reason if payload else None)
    return envelope("Seeker unblocked successfully", BlockedSeekerOut.model_validate(block))
