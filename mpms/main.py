# mpms/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from mpms.config import settings
from mpms.core.errors import CoreError
from mpms.database import engine, Base
from mpms.logging_setup import setup_logging
from mpms.models.user import User
from mpms.models.project import Project
from mpms.models.sprint import Sprint
from mpms.models.task import Task
from mpms.models.comment import Comment
from mpms.routers import auth, projects, sprints, tasks, team, reports

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(title="MPMS - Mini Project Management System", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(sprints.router)
app.include_router(tasks.router)
app.include_router(team.router)
app.include_router(reports.router)


@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError):
    if exc.status_code >= 409:
        logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Create DB Tables (for development; use Alembic in prod)
@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise
    logger.info("MPMS started (database=%s)", engine.url.render_as_string(hide_password=True))


@app.get("/")
def read_root():
    return {"message": "Welcome to MPMS Backend"}


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mpms.main:app", host="0.0.0.0", port=8000, reload=True)
