"""FastAPI dependencies: the shared key handle, decrypt strategy, upstream client."""

import logging

from fastapi import HTTPException, Request, status

from . import config
from .decrypt_client import DecryptClient
from .encryption import KeyHandle, import_key
from .errors import InvalidKeyError
from .orchestrator import (
    DecryptStrategy,
    LocalStrategy,
    RemoteBatchStrategy,
    RemotePerItemStrategy,
)
from .upstream_client import UpstreamClient

logger = logging.getLogger(__name__)


def load_key_handle(app) -> KeyHandle:
    """Return the app's key handle, importing it on first use.

    Raises InvalidKeyError when the key is missing or malformed.
    """
    handle = getattr(app.state, "key_handle", None)
    if handle is None:
        handle = import_key(config.ENCRYPTION_KEY)
        app.state.key_handle = handle
    return handle


def _key_error_detail() -> str:
    return "ENCRYPTION_KEY not set" if not config.ENCRYPTION_KEY else "ENCRYPTION_KEY invalid"


def get_key_handle(request: Request) -> KeyHandle:
    try:
        return load_key_handle(request.app)
    except InvalidKeyError as e:
        logger.error(f"Decryption unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_key_error_detail(),
        )


def get_decrypt_strategy(request: Request) -> DecryptStrategy:
    if not config.DECRYPT_URL:
        return LocalStrategy(get_key_handle(request))
    client = DecryptClient(base_url=config.DECRYPT_URL)
    if config.DECRYPT_MODE == "per_item":
        return RemotePerItemStrategy(client, concurrency=config.DECRYPT_CONCURRENCY)
    return RemoteBatchStrategy(client)


def get_upstream_client() -> UpstreamClient:
    return UpstreamClient()
