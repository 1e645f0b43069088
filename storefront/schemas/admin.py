# storefront/schemas/admin.py
from pydantic import BaseModel
from typing import Literal


class TaskInfo(BaseModel):
    task_name: str
    description: str


class TaskRunRequest(BaseModel):
    task_name: Literal["evict_stale_cache", "warm_catalog", "cleanup_old_items", "all"]


class EvictionResult(BaseModel):
    products_deleted: int
    categories_deleted: int
