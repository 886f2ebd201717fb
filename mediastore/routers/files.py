import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, UploadFile, File as Upload, Depends, HTTPException, Query, status as http_status
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mediastore.config import settings
from mediastore.config.deps import get_storage
from mediastore.errors import NotFoundError, PersistenceError, StorageError, ValidationError
from mediastore.storage import StorageEngine

LOG = logging.getLogger("mediastore.files")

router = APIRouter(prefix="/api/storage", tags=["storage"])


# ---------- Schemas ----------
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileUploadResponse(CamelModel):
    success: bool
    message: str
    file_path: str
    file_name: str
    original_name: str
    file_size: int
    project_name: str
    upload_date: datetime


class DeleteResponse(CamelModel):
    success: bool
    message: str


class FileListResponse(CamelModel):
    files: List[str]
    project_name: str
    folder: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str


# ---------- helpers ----------
def validate_upload_params(project_name: Optional[str], folder: Optional[str]) -> Optional[str]:
    """Check the upload query and return the folder, with blank meaning none."""
    if not project_name or not project_name.strip():
        raise ValidationError("Project name is required")
    if folder is None or not folder.strip():
        return None
    return folder


def _to_http(e: StorageError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=e.message)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    return HTTPException(status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _split_file_path(file_path: str):
    parts = [p for p in file_path.split("/") if p]
    if not parts:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail="File path is required")
    file_name = parts.pop()
    return file_name, ("/".join(parts) or None)


# ---------- Upload ----------
@router.post("/upload", response_model=FileUploadResponse, summary="Upload an image into a project")
def upload_file(
    file: Optional[UploadFile] = Upload(None),
    project_name: Optional[str] = Query(None, alias="projectName"),
    folder: Optional[str] = Query(None),
    storage: StorageEngine = Depends(get_storage),
):
    try:
        folder = validate_upload_params(project_name, folder)
        if file is None:
            raise ValidationError("No file provided")
    except ValidationError as e:
        raise _to_http(e)

    limit = settings.MAX_UPLOAD_BYTES
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(
            status_code=http_status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"file too large (> {limit} bytes)",
        )

    try:
        stored = storage.upload(data, file.filename or "", project_name, folder)
    except StorageError as e:
        raise _to_http(e)

    return FileUploadResponse(
        success=True,
        message="File uploaded and optimized successfully",
        file_path=stored.url,
        file_name=stored.file_name,
        original_name=stored.original_name,
        file_size=stored.size_bytes,
        project_name=stored.project_name,
        upload_date=stored.uploaded_at,
    )


# ---------- Retrieve ----------
@router.get("/files/{project_name}/{file_path:path}", summary="Stream a stored file")
def get_file(project_name: str, file_path: str, storage: StorageEngine = Depends(get_storage)):
    file_name, folder = _split_file_path(file_path)
    try:
        path = storage.locate(project_name, file_name, folder)
    except StorageError as e:
        raise _to_http(e)
    return FileResponse(path)


# ---------- Delete ----------
@router.delete("/files/{project_name}/{file_name}", response_model=DeleteResponse, summary="Delete a stored file")
def delete_file(
    project_name: str,
    file_name: str,
    folder: Optional[str] = Query(None),
    storage: StorageEngine = Depends(get_storage),
):
    try:
        storage.delete(project_name, file_name, folder)
    except StorageError as e:
        raise _to_http(e)
    return DeleteResponse(success=True, message="File deleted successfully")


# ---------- List ----------
@router.get("/projects/{project_name}/files", response_model=FileListResponse, summary="List files of a project folder")
def get_project_files(
    project_name: str,
    folder: Optional[str] = Query(None),
    storage: StorageEngine = Depends(get_storage),
):
    try:
        files = storage.list_files(project_name, folder)
    except StorageError as e:
        raise _to_http(e)
    return FileListResponse(files=files, project_name=project_name, folder=folder)


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc).isoformat())
