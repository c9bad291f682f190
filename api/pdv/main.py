import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pdv.core.config import Settings, get_settings
from pdv.core.errors import PDVError
from pdv.core.logging import configure_logging
from pdv.db.session import build_engine, make_session_factory
from pdv.db.tables import init_db
from pdv.routers import clients, exchanges, products, reports, sales
from pdv.routers import settings as company_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.engine)
    logger.info("Database ready at %s", app.state.engine.url.render_as_string(hide_password=True))
    yield
    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="PDV API", version="0.1.0", lifespan=lifespan)
    app.state.engine = build_engine(settings.database_url, settings.database_echo)
    app.state.session_factory = make_session_factory(app.state.engine)
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PDVError)
    async def handle_pdv_error(request: Request, exc: PDVError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(products.router)
    app.include_router(clients.router)
    app.include_router(sales.router)
    app.include_router(exchanges.router)
    app.include_router(company_settings.router)
    app.include_router(reports.router)

    return app


app = create_app()
