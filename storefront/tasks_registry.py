# storefront/tasks_registry.py

from storefront.services import cache_maintenance

# --- Словарь-реестр всех задач, доступных для ручного запуска ---
# Ключ - уникальное имя задачи, которое будет использоваться в API.
# 'function' - сама функция для вызова, принимает необязательный repository.
# 'description' - описание для отображения в админке.
# 'is_async' - флаг, чтобы скрипты знали, как запускать задачу.
# Задачи запускаются и по одной, и все подряд ("all"), поэтому здесь только
# безопасное обслуживание. Полная очистка кеша живет отдельно: DELETE /admin/cache.

TASKS = {
    "evict_stale_cache": {
        "function": cache_maintenance.evict_stale_cache_task,
        "description": "Удаляет из кеша товары и категории, которые не обновлялись дольше окна вытеснения.",
        "is_async": True,
    },
    "warm_catalog": {
        "function": cache_maintenance.warm_catalog_task,
        "description": "Загружает первую страницу каталога и категории из WooCommerce в кеш.",
        "is_async": True,
    },
    "cleanup_old_items": {
        "function": cache_maintenance.cleanup_old_items_task,
        "description": "Удаляет позиции корзин и избранного старше сроков хранения.",
        "is_async": True,
    },
}

# Отдельная функция для получения списка задач для API
def get_tasks_list():
    return [
        {"task_name": name, "description": data["description"]}
        for name, data in TASKS.items()
    ]
