import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.collections.router import router as collections_router
from app.api.v1.history.router import router as history_router
from app.api.v1.payments.router import router as payments_router
from app.api.v1.students.router import router as students_router
from app.api.v1.value_sets.router import router as value_sets_router
from app.core.config import settings
from app.db.schema_check import ensure_tables
from app.db.session import engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_tables(engine)
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Treasurer Backend", lifespan=lifespan)

    # CORS: allow the treasurer frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(students_router)
    app.include_router(value_sets_router)
    app.include_router(collections_router)
    app.include_router(payments_router)
    app.include_router(history_router)

    return app


app = create_app()
