from fastapi import APIRouter, Depends, Query

from app.core.security import get_current_user
from app.models.user_db.user_db import User
from app.schemas.upload.upload_base import UploadSignature
from app.services.cloudinary import DEFAULT_FOLDER, generate_upload_signature

upload_router = APIRouter(prefix="/upload", tags=["Upload"])


@upload_router.get("/signature", response_model=UploadSignature)
def upload_signature(
    folder: str = Query(DEFAULT_FOLDER, min_length=1, max_length=100),
    current_user: User = Depends(get_current_user)
):
    return generate_upload_signature(folder)
