# backend/app/models/common.py
from pydantic import BaseModel, ConfigDict


class CamelModel(BaseModel):
    """Базовая модель для тел запросов/ответов с camelCase ключами."""
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Тело ответа с ошибкой для эндпоинтов счетчика."""
    error: str
