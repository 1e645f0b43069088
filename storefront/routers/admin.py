# storefront/routers/admin.py

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from storefront.core import locales
from storefront.dependencies import get_catalog_repository
from storefront.schemas.admin import EvictionResult, TaskInfo, TaskRunRequest
from storefront.services import cache_maintenance
from storefront.services.catalog import CatalogRepository
from storefront.tasks_registry import TASKS, get_tasks_list

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tasks", response_model=List[TaskInfo])
def get_tasks_list_endpoint():
    """
    [АДМИН] Возвращает список всех доступных для ручного запуска фоновых задач.
    """
    return get_tasks_list()


@router.post("/tasks/run", status_code=status.HTTP_202_ACCEPTED)
async def run_task_endpoint(
    request_data: TaskRunRequest,
    background_tasks: BackgroundTasks,
    repository: CatalogRepository = Depends(get_catalog_repository),
):
    """
    [АДМИН] Запускает одну конкретную фоновую задачу или все сразу.
    """
    task_name_to_run = request_data.task_name

    if task_name_to_run == "all":
        for name, data in TASKS.items():
            background_tasks.add_task(data["function"], repository=repository)

        message = "All background tasks have been scheduled to run."
        logger.info("All background tasks were manually triggered.")

    elif task_name_to_run in TASKS:
        task_function = TASKS[task_name_to_run]["function"]
        background_tasks.add_task(task_function, repository=repository)
        message = f"Task '{task_name_to_run}' has been scheduled to run."
        logger.info(f"Background task '{task_name_to_run}' was manually triggered.")
    else:
        # Этот код практически недостижим благодаря валидации Pydantic `Literal`
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task '{task_name_to_run}' not found.")

    return {"status": "accepted", "message": message}


@router.post("/cache/evict", response_model=EvictionResult)
async def evict_stale_cache(repository: CatalogRepository = Depends(get_catalog_repository)):
    """[АДМИН] Синхронно запускает вытеснение устаревших записей и возвращает итог."""
    return await repository.evict_stale()


@router.delete("/cache")
async def clear_cache(repository: CatalogRepository = Depends(get_catalog_repository)):
    """[АДМИН] Полная очистка кеша каталога."""
    result = await cache_maintenance.clear_cache_task(repository)
    return {"status": "ok", "message": locales.SUCCESS_CACHE_CLEARED, **result.model_dump()}
