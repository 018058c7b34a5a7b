from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, status
from typing import List, Optional
import logging

from dependencies import get_medicine_service
from schemas.medicine import Medicine as MedicineSchema, MedicineCreate, MedicineStatusUpdate, MedicineUpdate
from services.medicine_service import MedicineService
from utils.auth_utils import get_current_user
from utils.s3_upload import delete_medicine_image, upload_medicine_image

router = APIRouter(prefix="/medicines", tags=["Medicines"])
logger = logging.getLogger("medicine")

ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


@router.get("/", response_model=List[MedicineSchema])
def get_all_medicines(
    active_only: bool = False,
    category_id: Optional[int] = None,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    """List medicines ordered by name."""
    return service.list_medicines(active_only=active_only, category_id=category_id)


@router.get("/{medicine_id}", response_model=MedicineSchema)
def get_medicine(
    medicine_id: int,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    """Get a specific medicine by ID."""
    return service.get_medicine(medicine_id)


@router.post("/", response_model=MedicineSchema, status_code=status.HTTP_201_CREATED)
def create_medicine(
    medicine: MedicineCreate,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    """Create a new medicine."""
    return service.create_medicine(medicine, user)


@router.patch("/{medicine_id}", response_model=MedicineSchema)
def update_medicine(
    medicine_id: int,
    medicine: MedicineUpdate,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    """Update an existing medicine. A quantity change is recorded as a manual stock adjustment."""
    return service.update_medicine(medicine_id, medicine, user)


@router.patch("/{medicine_id}/status", response_model=MedicineSchema)
def update_medicine_status(
    medicine_id: int,
    payload: MedicineStatusUpdate,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    return service.set_status(medicine_id, payload.active, user)


@router.delete("/{medicine_id}")
def delete_medicine(
    medicine_id: int,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    """Delete a medicine that has never been sold."""
    images = service.delete_medicine(medicine_id, user)
    for url in images:
        delete_medicine_image(url)
    return {"message": "Medicine deleted successfully"}


@router.post("/{medicine_id}/images", response_model=MedicineSchema)
def upload_images(
    medicine_id: int,
    files: List[UploadFile] = File(...),
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    """Replace the images of a medicine."""
    service.get_medicine(medicine_id)
    if not files:
        raise HTTPException(status_code=400, detail="At least one image is required")

    for upload in files:
        extension = (upload.filename or "").rsplit(".", 1)[-1].lower()
        if extension not in ALLOWED_IMAGE_EXTENSIONS:
            raise HTTPException(status_code=400, detail=f"File '{upload.filename}' is not a supported image type")

    # Nothing stays in the bucket unless every file is stored
    urls = []
    for upload in files:
        content = upload.file.read()
        try:
            urls.append(upload_medicine_image(content, upload.filename, medicine_id))
        except Exception as e:
            logger.error(f"Image upload failed for medicine ID {medicine_id}: {e}")
            for url in urls:
                delete_medicine_image(url)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Image upload failed: {e}")

    previous = service.replace_images(medicine_id, urls, user)
    for url in previous:
        delete_medicine_image(url)
    return service.get_medicine(medicine_id)


@router.delete("/{medicine_id}/images", response_model=MedicineSchema)
def remove_images(
    medicine_id: int,
    service: MedicineService = Depends(get_medicine_service),
    user: dict = Depends(get_current_user),
):
    previous = service.replace_images(medicine_id, [], user)
    for url in previous:
        delete_medicine_image(url)
    return service.get_medicine(medicine_id)
