import uvicorn
from fastapi import FastAPI

from paddock.api.routes.ballots import router as ballots_router
from paddock.api.routes.basket import router as basket_router
from paddock.api.routes.health import router as health_router
from paddock.api.routes.horses import router as horses_router
from paddock.api.routes.leads import router as leads_router
from paddock.api.routes.promotions import router as promotions_router
from paddock.api.routes.votes import router as votes_router
from paddock.api.routes.wallet import router as wallet_router
from paddock.core.config import get_settings
from paddock.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Paddock Syndicates API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.include_router(health_router)
    app.include_router(basket_router)
    app.include_router(horses_router)
    app.include_router(promotions_router)
    app.include_router(wallet_router)
    app.include_router(ballots_router)
    app.include_router(votes_router)
    app.include_router(leads_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "paddock.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
