from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront import __version__
from storefront.core.config import Settings, get_settings
from storefront.core.guard import AccessGuard, default_confinements
from storefront.core.logger import configure_from_settings
from storefront.core.rbac import RoleDirectory
from storefront.db.session import make_engine
from storefront.db.store import DataStore, SqlAlchemyStore
from storefront.services.audit import AuditLogger
from storefront.services.notifications import NotificationDispatcher, NotificationTriggers
from storefront.services.role_assignments import RoleAssignments
from storefront.api.routers import access, audit, notifications, roles


def create_app(settings: Optional[Settings] = None, store: Optional[DataStore] = None) -> FastAPI:
    """Build the API with its role directory, guard, audit trail and notification services."""
    settings = settings or get_settings()
    configure_from_settings(settings)

    if store is None:
        store = SqlAlchemyStore(make_engine(settings.database_url))

    directory = RoleDirectory(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await directory.initialize()
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Storefront access control and notifications",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    dispatcher = NotificationDispatcher(store, directory)
    app.state.store = store
    app.state.directory = directory
    app.state.dispatcher = dispatcher
    app.state.triggers = NotificationTriggers(
        dispatcher,
        high_value_threshold=settings.high_value_order_threshold,
        low_stock_threshold=settings.low_stock_threshold,
    )
    app.state.audit = AuditLogger(store)
    app.state.assignments = RoleAssignments(store, directory, app.state.audit)
    app.state.guard = AccessGuard(
        confinements=default_confinements(settings.cashier_pos_path),
        login_path=settings.login_path,
        history_size=settings.guard_history_size,
    )

    app.include_router(access.router, prefix="/api")
    app.include_router(notifications.router, prefix="/api")
    app.include_router(roles.router, prefix="/api")
    app.include_router(audit.router, prefix="/api")

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "roles_loaded": directory.is_initialized,
        }

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    return app
