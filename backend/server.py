"""
AJK Cleaners CRM - API Backend

Start with:
    uvicorn server:app --host 0.0.0.0 --port 4000
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware

from config import STATIC_DIR, Clock, Settings, create_db, load_settings
from email_service import EmailService
from routes import admin, agenda, auth, customers, export
from routes.auth import SESSION_COOKIE, find_session
from scheduler_service import TaskScheduler
from services.customer_store import CustomerStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("ajk_crm")


def wire_services(app: FastAPI, settings, db, client=None, email_service=None, clock=None):
    """Attach the components to app.state (also used by tests and scripts)"""
    app.state.settings = settings
    app.state.mongo_client = client
    app.state.db = db
    app.state.store = CustomerStore(db)
    app.state.clock = clock or Clock(settings.business_timezone)
    app.state.email_service = email_service or EmailService(settings)
    app.state.task_scheduler = TaskScheduler(
        settings, db, app.state.store, app.state.email_service, app.state.clock
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around one Settings struct.

    Without an explicit struct the environment (and backend/.env) is read
    here; missing configuration raises ConfigError before the app exists.
    """
    settings = settings or load_settings()

    app = FastAPI(
        title="AJK Cleaners CRM",
        description="Customers, recurring visits, reminders and reports",
        version="1.0.0"
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==================== ROUTES ====================

    app.include_router(auth.router, prefix="/api")
    app.include_router(customers.router, prefix="/api")
    app.include_router(agenda.router, prefix="/api")
    app.include_router(export.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")

    # ==================== PAGES ====================

    @app.get("/login", include_in_schema=False)
    async def login_page():
        return FileResponse(STATIC_DIR / "login.html")

    @app.get("/logout", include_in_schema=False)
    async def logout_page(request: Request):
        token = request.cookies.get(SESSION_COOKIE)
        if token:
            await request.app.state.db.sessions.delete_one({"token": token})
        response = RedirectResponse("/login", status_code=303)
        response.delete_cookie(SESSION_COOKIE)
        return response

    @app.get("/", include_in_schema=False)
    async def index_page(request: Request):
        if not await find_session(request):
            return RedirectResponse("/login", status_code=303)
        return FileResponse(STATIC_DIR / "index.html")

    # ==================== ERRORS ====================

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Error processing {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # ==================== STARTUP / SHUTDOWN ====================

    @app.on_event("startup")
    async def startup():
        settings = app.state.settings
        client, db = create_db(settings)
        wire_services(app, settings, db, client=client)

        await app.state.store.ensure_indexes()
        await db.sessions.create_index("token", unique=True)
        await db.sessions.create_index("expires_at")
        await db.activity_logs.create_index("created_at")

        app.state.task_scheduler.start()
        logger.info(f"🚀 AJK CRM started (db={settings.db_name}, env={settings.environment})")

    @app.on_event("shutdown")
    async def shutdown():
        scheduler = getattr(app.state, "task_scheduler", None)
        if scheduler:
            scheduler.stop()
        client = getattr(app.state, "mongo_client", None)
        if client:
            client.close()

    # Static assets (service worker, manifest, icons) after the routes above
    app.mount("/", StaticFiles(directory=STATIC_DIR), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=4000)
