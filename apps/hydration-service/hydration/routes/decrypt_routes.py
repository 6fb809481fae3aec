import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..auth import verify_internal_key
from ..decryptor import decrypt_text
from ..dependencies import get_key_handle
from ..encryption import KeyHandle
from ..errors import AuthenticationError, DecryptionError, FormatError
from ..schemas import DecryptRequest, DecryptResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/decrypt", tags=["decrypt"])


def _decrypt_or_none(position: int, wire: str, key: KeyHandle) -> str | None:
    try:
        return decrypt_text(wire, key)
    except DecryptionError as e:
        logger.warning(f"Batch item {position} failed to decrypt: {e.reason}")
        return None


@router.post("", response_model=DecryptResponse)
def decrypt(
    request: DecryptRequest,
    http_request: Request,
    _key=Depends(verify_internal_key),
):
    """Decrypt one wire value, or an ordered list of them.

    A list gets one entry per input, ``null`` where that item failed. A single
    value that fails is a 400 (format) or 422 (authentication).
    """
    if request.data is None or request.data == "":
        raise HTTPException(status_code=400, detail="No data provided")

    key = get_key_handle(http_request)

    if isinstance(request.data, list):
        decrypted = [_decrypt_or_none(i, w, key) for i, w in enumerate(request.data)]
        return DecryptResponse(success=True, decrypted=decrypted)

    try:
        return DecryptResponse(success=True, decrypted=decrypt_text(request.data, key))
    except FormatError as e:
        logger.warning(f"Rejected malformed value: {e}")
        raise HTTPException(status_code=400, detail="Invalid encrypted format")
    except AuthenticationError:
        logger.warning("Value failed authentication")
        raise HTTPException(status_code=422, detail="Authentication failed")
    except DecryptionError as e:
        raise HTTPException(status_code=400, detail=f"Decryption failed: {e.reason}")
