from typing import Optional, Union

from fastapi import UploadFile

from config import MAX_UPLOAD_BYTES
from errors import ErrorKind, Failure


async def check_upload(upload: Optional[UploadFile], max_bytes=MAX_UPLOAD_BYTES) -> Union[bytes, Failure]:
    """Return the upload's bytes, or a Failure for a missing, non-image or oversized file.

    The type is checked before the size, so an oversized non-image is rejected as
    invalid input. Only ``max_bytes + 1`` bytes are ever buffered.
    """
    if upload is None or not upload.filename:
        return Failure(ErrorKind.INVALID_INPUT, "Image file not found")

    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        return Failure(ErrorKind.INVALID_INPUT, "File must be an image")

    contents = await upload.read(max_bytes + 1)
    if len(contents) > max_bytes:
        return Failure(ErrorKind.PAYLOAD_TOO_LARGE)
    if not contents:
        return Failure(ErrorKind.INVALID_INPUT, "Image file is empty")

    return contents
