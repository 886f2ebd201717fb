import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mediastore.config import settings
from mediastore.config.deps import get_storage
from mediastore.routers.files import router as files_router



def setup_logging():
    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format=fmt)

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)

    logging.getLogger("mediastore").setLevel(level)
    # boto3 is only touched for SSM lookups
    logging.getLogger("botocore").setLevel(logging.WARNING)

setup_logging()


app = FastAPI(
    title="Media Storage API",
    version=settings.VERSION or "v1",
    docs_url="/docs",
    openapi_url="/openapi.json",
)

# CORS
origins = settings.CORS_ALLOW_ORIGINS
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.on_event("startup")
def _startup():
    # Creates the upload root if absent
    storage = get_storage()
    logging.getLogger("mediastore.storage").info("Upload root ready at %s", storage.root.resolve())


app.include_router(files_router)


@app.get("/")
def index():
    return {"ok": True, "docs": "/docs"}
