"""FastAPI application entry point"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_api.config import Settings, configure_logging, get_settings
from recipe_api.database import Database
from recipe_api.exceptions import register_exception_handlers

logger = logging.getLogger("recipe-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    # Startup
    database = Database(settings.database_url, echo=settings.debug)
    await database.create_all()
    app.state.database = database
    logger.info({"message": "Database ready", "url": database.engine.url.render_as_string(hide_password=True)})

    yield

    # Shutdown
    await database.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.api_version}

    # Import and include routers
    from recipe_api.routers import auth, meal_plans, recipes, users

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(users.router, prefix="/users", tags=["Users"])
    app.include_router(recipes.router, prefix="/recipes", tags=["Recipes"])
    app.include_router(meal_plans.router, prefix="/meal-plans", tags=["Meal Plans"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("recipe_api.main:app", host="0.0.0.0", port=5000, reload=True)
