"""Directory router - FastAPI endpoints for categories and worker profiles"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_principal
from ...database import get_db
from ...models import Profile
from .schemas import CategoryResponse, WorkerProfileCreate, WorkerProfileUpdate, WorkerResponse
from .service import DirectoryService

router = APIRouter(tags=["Directory"])


def get_directory_service(db: Session = Depends(get_db)) -> DirectoryService:
    """Dependency injection for DirectoryService"""
    return DirectoryService(db)


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    current_principal: Profile = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    return service.list_categories()


@router.get("/workers", response_model=list[WorkerResponse])
async def search_workers(
    current_principal: Profile = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
    category_id: Optional[str] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Matches name, bio or skills"),
):
    """Browse workers, optionally filtered by category and free text"""
    return [WorkerResponse.from_model(w) for w in service.search_workers(category_id, q)]


@router.post("/workers", response_model=WorkerResponse, status_code=201)
async def create_worker_profile(
    data: WorkerProfileCreate,
    current_principal: Profile = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    """Submit the worker application (once per worker)"""
    worker = service.create_worker_profile(current_principal, data)
    return WorkerResponse.from_model(worker)


@router.get("/workers/me", response_model=WorkerResponse)
async def get_my_worker_profile(
    current_principal: Profile = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    return WorkerResponse.from_model(service.get_own_worker_profile(current_principal))


@router.patch("/workers/me", response_model=WorkerResponse)
async def update_my_worker_profile(
    data: WorkerProfileUpdate,
    current_principal: Profile = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    worker = service.update_worker_profile(current_principal, data)
    return WorkerResponse.from_model(worker)


@router.get("/workers/{worker_id}", response_model=WorkerResponse)
async def get_worker(
    worker_id: str,
    current_principal: Profile = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    return WorkerResponse.from_model(service.get_worker(worker_id))
