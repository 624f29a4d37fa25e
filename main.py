import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config.security import SecurityConfig
from app.database import Base, engine
from app.routers import auth, project, task, comment, dashboard
from app.utils.errors import AppError, Unauthenticated

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Task Board API")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=SecurityConfig.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error rendering
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Unhandled database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "error": "internal"})

# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(project.router, prefix="/projects", tags=["Projects"])
app.include_router(task.router, tags=["Tasks"])
app.include_router(comment.router, tags=["Comments"])
app.include_router(dashboard.router, tags=["Dashboard"])

# Startup event
@app.on_event("startup")
def startup_event():
    """Create missing tables when the application starts"""
    logger.info("Starting Task Board API...")
    Base.metadata.create_all(bind=engine)

# Root route
@app.get("/")
def read_root():
    return {"message": "Task Board API"}

@app.get("/health")
def health():
    return {"status": "ok"}
