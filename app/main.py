"""
OD Zen — On-Duty request management backend.
FastAPI entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import ODZenError
from app.core.logging_config import setup_logging
from app.core.middleware import RequestLogMiddleware
from app.routers import auth, events, student, teacher
from app.utils.response import error_response

setup_logging()

app = FastAPI(
    title=settings.APP_NAME,
    description="On-Duty request management for students and teachers",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLogMiddleware)


@app.exception_handler(ODZenError)
async def odzen_error_handler(request: Request, exc: ODZenError):
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))


# Include routers
app.include_router(auth.router)
app.include_router(student.router)
app.include_router(teacher.router)
app.include_router(events.router)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
        "auth_mode": settings.AUTH_MODE,
    }


@app.get("/api/health")
async def health():
    return {"status": "healthy", "auth_mode": settings.AUTH_MODE}
