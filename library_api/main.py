import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from minirel.config import EngineConfig, get_config
from minirel.database import DatabaseEngine
from minirel.generator import SchemaGenerator
from minirel.session import Session

from library_api.models import LibraryBase
from library_api.endpoints.authors_endpoints import router as authors_router
from library_api.endpoints.books_endpoints import router as books_router
from library_api.endpoints.clinic_endpoints import router as clinic_router

logger = logging.getLogger("library_api")


def create_app(config: EngineConfig = None) -> FastAPI:
    config = config or get_config()
    # requests are served from a worker thread, not the one that connected
    config = config.model_copy(update={"check_same_thread": False})

    app = FastAPI()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = DatabaseEngine(config=config)
    SchemaGenerator().create_all(engine, LibraryBase._registry, drop_first=False)
    logger.info(f"Serving {config.database}")

    app.state.engine = engine
    app.state.session = Session(engine)

    app.include_router(authors_router)
    app.include_router(books_router)
    app.include_router(clinic_router)
    return app


app = create_app()
