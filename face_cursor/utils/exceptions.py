"""
Иерархия исключений приложения.

Фатальна только ошибка загрузки изображения. Камера деградирует
до состояния ожидания, ошибки детектора пробрасываются наверх.
"""

from typing import Any, Optional


class FaceCursorError(Exception):
    """Базовое исключение с контекстом и исходной причиной."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        self.context = context or {}
        self.cause = cause

        full_message = message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            full_message = f"{message} [{context_str}]"

        if cause:
            full_message = f"{full_message} (caused by: {cause})"

        super().__init__(full_message)


class AssetLoadError(FaceCursorError):
    """Не удалось загрузить изображение курсора."""

    def __init__(self, path: Any, cause: Optional[Exception] = None):
        self.path = str(path)
        super().__init__("Failed to load image asset", context={"path": self.path}, cause=cause)


class CameraError(FaceCursorError):
    """Камера недоступна."""

    def __init__(self, camera_index: int, cause: Optional[Exception] = None):
        self.camera_index = camera_index
        super().__init__("Failed to open camera", context={"camera_index": camera_index}, cause=cause)


class DetectorError(FaceCursorError):
    """Ошибка построения или запуска детектора."""
    pass
