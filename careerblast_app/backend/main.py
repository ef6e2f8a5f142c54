from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api import admin, auth, files, health, jobs, profile, recruiter
from .models.db.database import engine, Base, SessionLocal
from .models.db import user as user_model
from .models.db import recruiter_application as recruiter_application_model
from .models.db import job as job_model
from .services import auth_service
from .utils.logging_config import setup_logging, get_logger
from .config.settings import get_settings

# Initialize settings
settings = get_settings()

# Setup logging configuration
setup_logging(
    level=settings.log_level,
    log_file=settings.log_file,
    fmt=settings.log_format,
    datefmt=settings.log_date_format,
)
logger = get_logger(__name__)

# Validate configuration on startup
missing_settings = settings.validate_required_settings()
if missing_settings:
    for setting in missing_settings:
        logger.error("Configuration error: %s", setting)
    if settings.is_production():
        raise RuntimeError("Invalid configuration for production environment")

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.api_docs_enabled else None,
    redoc_url="/redoc" if settings.api_docs_enabled else None,
)

# Add CORS middleware if enabled
if settings.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Routers
app.include_router(health.router, prefix="/api", tags=["Health Check"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(recruiter.router, prefix="/api/recruiter", tags=["Recruiter Application"])
app.include_router(admin.router, prefix="/api/admin", tags=["Recruiter Review"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["Jobs"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(files.router, prefix="/api/files", tags=["Files"])


@app.on_event("startup")
def on_startup():
    """Create tables and the bootstrap admin account."""
    logger.info("Starting %s v%s (%s)", settings.app_name, settings.app_version, settings.environment)
    # Models are imported above so their tables are registered on Base.metadata
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized successfully")

    if settings.admin_email and settings.admin_password:
        db = SessionLocal()
        try:
            auth_service.ensure_admin_user(db, settings.admin_email, settings.admin_password)
        finally:
            db.close()


@app.get("/")
def read_root():
    return {"message": f"Welcome to the {settings.app_name}"}
