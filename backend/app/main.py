from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.routers import accounts, activity, imports, invoices, transactions, vendors
from app.routers import settings as settings_router
from app.config import settings
from app.services.folder_watcher import poll_inbox_job
from app.services.scheduler import PeriodicTask, Scheduler
from app.services.token_service import refresh_token_job
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Log startup information
logger.info("="*60)
logger.info("Starting Zoho Invoice Processor API")
logger.info("="*60)
logger.info(f"Extraction provider: {settings.extraction_provider}")
logger.info(f"Anthropic API Key configured: {bool(settings.anthropic_api_key)}")
logger.info(f"OpenAI API Key configured: {bool(settings.openai_api_key)}")
logger.info(f"Claude Model: {settings.claude_model}")
logger.info(f"Background jobs enabled: {settings.background_jobs_enabled}")
logger.info("="*60)

# Tables are created by Alembic migrations (alembic upgrade head)


def build_scheduler() -> Scheduler:
    scheduler = Scheduler()
    scheduler.add(PeriodicTask("token-refresh", settings.token_refresh_interval_seconds, refresh_token_job))
    scheduler.add(PeriodicTask("inbox-poll", settings.folder_poll_interval_seconds, poll_inbox_job))
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = build_scheduler() if settings.background_jobs_enabled else None
    if scheduler:
        scheduler.start()
    yield
    if scheduler:
        await scheduler.stop()


app = FastAPI(
    title="Zoho Invoice Processor API",
    description="Extract supplier invoices from PDFs and upload them to Zoho Books as bills",
    version="1.0.0",
    lifespan=lifespan
)


# Parse CORS origins from config
def parse_cors_origins(origins_str: str) -> list:
    """Parse comma-separated CORS origins into a list"""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


cors_origins = parse_cors_origins(settings.cors_origins)
# Default origins for local development
default_origins = ["http://localhost:3000", "http://localhost:5173"]
all_origins = cors_origins or default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=all_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(invoices.router)
app.include_router(imports.router)
app.include_router(transactions.router)
app.include_router(accounts.router)
app.include_router(vendors.router)
app.include_router(settings_router.router)
app.include_router(activity.router)


@app.get("/")
def root():
    return {"message": "Zoho Invoice Processor API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# Exception handler to ensure CORS headers are always sent
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to ensure CORS headers are sent even on errors"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    origin = request.headers.get("origin", "*")
    cors_origin = origin if origin in all_origins else "*"

    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"},
        headers={
            "Access-Control-Allow-Origin": cors_origin,
            "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS, PATCH",
            "Access-Control-Allow-Headers": "*",
            "Access-Control-Allow-Credentials": "true",
        }
    )
