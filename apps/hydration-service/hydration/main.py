import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .dependencies import load_key_handle
from .routes.decrypt_routes import router as decrypt_router
from .routes.group_routes import router as group_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Hydration service starting up — importing encryption key...")
    if config.ENCRYPTION_KEY:
        # A malformed key is fatal: refuse to start rather than fail per request.
        handle = load_key_handle(app)
        logger.info(f"Encryption key {handle.short_id} ready")
    else:
        logger.warning("ENCRYPTION_KEY is not set; decryption requests will fail")
    if config.DECRYPT_URL:
        logger.info(f"Using remote decrypting boundary ({config.DECRYPT_MODE} mode)")
    yield


app = FastAPI(title="Hydration Service", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(decrypt_router)
app.include_router(group_router)


@app.get("/health")
def health():
    return {"status": "ok"}
