# run_tasks_manually.py
import asyncio
import logging
import sys
import os

# Хак для корректной работы импортов
sys.path.append(os.getcwd())

from storefront.clients.woocommerce import wc_client
from storefront.tasks_registry import TASKS


async def main(task_names):
    """
    Поочередно запускает задачи обслуживания кеша.
    Без аргументов запускаются все задачи из реестра.
    """
    print("--- Manual Task Runner ---")
    names = task_names or list(TASKS)
    unknown = [name for name in names if name not in TASKS]
    if unknown:
        print(f"Unknown tasks: {', '.join(unknown)}. Available: {', '.join(TASKS)}")
        return

    try:
        for index, name in enumerate(names, start=1):
            print(f"\n[{index}/{len(names)}] Running: {name}...")
            await TASKS[name]["function"]()
            print("Done.")
    finally:
        await wc_client.aclose()

    print("\n--- All tasks completed! ---")


if __name__ == "__main__":
    # Настраиваем логирование, чтобы видеть вывод от наших сервисов
    logging.basicConfig(level=logging.INFO, stream=sys.stdout, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    try:
        asyncio.run(main(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nScript interrupted by user.")
