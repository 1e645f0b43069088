# storefront/core/locales.py

# Сообщения об ошибках
ERROR_PRODUCT_NOT_FOUND = "Товар не найден."
ERROR_PRODUCT_OUT_OF_STOCK = "Товар закончился на складе."
ERROR_NOT_ENOUGH_STOCK = "Недостаточно товара на складе. Доступно: {available_quantity} шт."
ERROR_ITEM_NOT_IN_CART = "Позиция не найдена в корзине."
ERROR_ITEM_NOT_IN_WISHLIST = "Товар не найден в избранном."
ERROR_CATALOG_UNAVAILABLE = "Каталог временно недоступен. Попробуйте позже."
ERROR_INVALID_QUERY = "Некорректные параметры запроса."

# Сообщения об успехе
SUCCESS_CART_CLEARED = "Корзина очищена."
SUCCESS_ITEM_REMOVED_FROM_CART = "Товар удален из корзины."
SUCCESS_REMOVED_FROM_WISHLIST = "Товар удален из избранного."
SUCCESS_CACHE_CLEARED = "Кеш каталога очищен."
