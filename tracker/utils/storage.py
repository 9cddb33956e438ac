import io
from dataclasses import dataclass

import cloudinary
import cloudinary.uploader
from fastapi.concurrency import run_in_threadpool

from tracker.config import settings
from tracker.exceptions import StorageError
from tracker.utils.logger import get_logger

logger = get_logger("storage")

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True,
)


@dataclass
class StoredObject:
    url: str
    public_id: str
    resource_type: str


async def upload_file(content: bytes, filename: str, folder: str | None = None) -> StoredObject:
    folder = folder or settings.STORAGE_FOLDER
    try:
        result = await run_in_threadpool(
            cloudinary.uploader.upload,
            io.BytesIO(content),
            resource_type="auto",
            folder=folder,
            filename=filename,
        )
    except Exception as e:
        logger.error("Upload of %s failed: %s", filename, e)
        raise StorageError("File upload failed") from e

    return StoredObject(
        url=result["secure_url"],
        public_id=result["public_id"],
        resource_type=result["resource_type"],
    )


async def destroy_file(public_id: str, resource_type: str):
    try:
        result = await run_in_threadpool(
            cloudinary.uploader.destroy, public_id, resource_type=resource_type
        )
    except Exception as e:
        logger.error("Delete of %s failed: %s", public_id, e)
        raise StorageError("Failed to delete attachment from storage") from e

    # "not found" means the object is already gone
    if result.get("result") not in ("ok", "not found"):
        raise StorageError(f"Storage refused to delete {public_id}: {result.get('result')}")
