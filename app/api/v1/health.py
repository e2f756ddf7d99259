from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the extraction service.")
async def health_check():
    return {"status": "healthy", "extraction_version": settings.extraction_version}
