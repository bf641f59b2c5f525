"""
YelpCamp Backend - Stored Image Route
=======================================

What:  Serves uploaded campground images from local storage.
How:   FileService.resolve() confines the path to STORAGE_ROOT; anything
       outside it, or missing, is a 404. Stored files are immutable
       (uuid names), so they are cached for a day.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app.dependencies import get_file_service
from app.services.file_service import FileService

router = APIRouter(tags=["Images"])


@router.get("/images/{relative_path:path}", response_class=FileResponse)
async def serve_image(
    relative_path: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    path = files.resolve(relative_path)
    if path is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return FileResponse(path, headers={"Cache-Control": "public, max-age=86400"})
