from __future__ import annotations

from fastapi import FastAPI

from village_combat.web.api import router as api_router


def create_app() -> FastAPI:
    app = FastAPI(title="Village Combat Lab")
    app.include_router(api_router.router)
    return app


app = create_app()
