"""API gateway entrypoint."""

from __future__ import annotations

from fastapi import FastAPI

from libs.common.config import load_settings
from services.api_gateway.dependencies import AppContext, build_context
from services.api_gateway.presentation.http.routes import router


def create_app(context: AppContext | None = None) -> FastAPI:
    application = FastAPI(title="Lifeguard Monitor API")
    application.state.context = context or build_context(load_settings())
    application.include_router(router)
    return application


app = create_app()
