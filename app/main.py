import logging
import logging.config
import os

import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from app.api.api_router import router
from app.models import Base
from app.db.base import build_engine, build_session_factory
from app.core.config import settings
from app.helpers.exception_handler import CustomException, http_exception_handler
from app.repository.repo_storage import InMemoryStorage, SqlStorage, StorageBackend

if os.path.exists(settings.LOGGING_CONFIG_FILE):
    logging.config.fileConfig(settings.LOGGING_CONFIG_FILE, disable_existing_loggers=False)

logger = logging.getLogger(__name__)


def create_storage() -> StorageBackend:
    """Storage backend selected by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == 'memory':
        logger.info("create_storage: using in-memory storage")
        return InMemoryStorage()

    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    logger.info(f"create_storage: using SQL storage at {engine.url.render_as_string(hide_password=True)}")
    return SqlStorage(build_session_factory(engine))


def get_application() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME, docs_url="/docs", redoc_url='/re-docs',
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        description='''
        Posture coaching backend
            - Exercise sessions with repetition and set counting
            - Postural risk analysis with recommendations
            - Achievement badges and activity streaks
        '''
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.storage = create_storage()
    application.include_router(router, prefix=settings.API_PREFIX)
    application.add_exception_handler(CustomException, http_exception_handler)

    return application


app = get_application()
if __name__ == '__main__':
    uvicorn.run(app, host="0.0.0.0", port=8000)
