import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core import SiteDeployer
from ..db import (
    ProjectRepository,
    SqlProjectRepository,
    create_all,
    create_engine,
    create_session_factory,
)
from ..errors import PortfolioError, error_body
from ..log import configure_logging
from ..models import AppConfig
from ..services import (
    CompletionClient,
    DeploymentPlatform,
    DeploymentService,
    LLMService,
    TemplateLibrary,
)
from .deps import HeaderIdentity, IdentityResolver
from .routes.generate import router as generate_router
from .routes.health import router as health_router
from .routes.projects import router as projects_router
from .routes.users import router as users_router

logger = logging.getLogger(__name__)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PortfolioError)
    async def _portfolio_error(request: Request, exc: PortfolioError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=jsonable_encoder(error_body("Invalid request", exc.errors())),
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"{request.method} {request.url.path} crashed: {exc}")
        return JSONResponse(status_code=500, content=error_body("Internal server error"))


def create_app(
    config: Optional[AppConfig] = None,
    repository: Optional[ProjectRepository] = None,
    completion: Optional[CompletionClient] = None,
    platform: Optional[DeploymentPlatform] = None,
    templates: Optional[TemplateLibrary] = None,
    identity: Optional[IdentityResolver] = None,
) -> FastAPI:
    """Build the API with its collaborators.

    Anything not passed in is built from ``config``: a SQLAlchemy
    repository, the langchain completion service, the deployment
    platform client and the on-disk template library.
    """
    config = config or AppConfig()
    configure_logging(config.debug)

    app = FastAPI(title="Crux AI Portfolio API", version="1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    if repository is None:
        engine = create_engine(config.database.url, echo=config.debug)
        repository = SqlProjectRepository(create_session_factory(engine))

        @app.on_event("startup")
        async def _startup_db() -> None:
            await create_all(engine)

        @app.on_event("shutdown")
        async def _shutdown_db() -> None:
            await engine.dispose()

    if platform is None:
        service = DeploymentService(config.deploy)
        platform = service

        @app.on_event("startup")
        async def _open_platform() -> None:
            await service.open()

        @app.on_event("shutdown")
        async def _close_platform() -> None:
            await service.close()

    app.state.config = config
    app.state.repository = repository
    app.state.completion = completion or LLMService(config.llm)
    app.state.platform = platform
    app.state.templates = templates or TemplateLibrary(config.templates.template_dir)
    app.state.identity = identity or HeaderIdentity()
    app.state.deployer = SiteDeployer(
        platform, config.deploy, config.pipeline.artifact_min_length
    )

    _install_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(generate_router)
    app.include_router(projects_router)
    app.include_router(users_router)

    logger.info(f"[CORS] allow_origins = {config.cors_origins}")
    return app
