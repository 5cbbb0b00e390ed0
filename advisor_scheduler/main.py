from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from advisor_scheduler.api.v1.appointments.router import router as appointments_router
from advisor_scheduler.api.v1.auth.router import router as auth_router
from advisor_scheduler.api.v1.comments.router import router as comments_router
from advisor_scheduler.api.v1.notifications.router import router as notifications_router
from advisor_scheduler.api.v1.project_archive.router import router as project_archive_router
from advisor_scheduler.api.v1.projects.router import router as projects_router
from advisor_scheduler.api.v1.users.router import router as users_router
from advisor_scheduler.core.config import settings
from advisor_scheduler.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Advisor Scheduler")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers. Comments before appointments: /{id}/comments must win over /{id}/{event}
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(projects_router)
    app.include_router(comments_router)
    app.include_router(appointments_router)
    app.include_router(notifications_router)
    app.include_router(project_archive_router)

    @app.get("/api/v1/health", tags=["health"])
    async def health() -> dict:
        return {
            "success": True,
            "message": "Advisor Scheduler API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
