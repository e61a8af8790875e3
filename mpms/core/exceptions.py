# mpms/core/exceptions.py


class BaseAppException(Exception):
    """Базовый класс для всех исключений приложения. Хранит HTTP-статус ответа."""
    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

# ==== 400 ====

class BadRequestError(BaseAppException):
    """Некорректный идентификатор или входные данные."""
    status_code = 400

    def __init__(self, message: str = "Bad request"):
        super().__init__(message)

# ==== 401 ====

class UnauthorizedError(BaseAppException):
    """Нет токена, токен невалиден или истёк."""
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)

class TokenExpiredError(UnauthorizedError):
    def __init__(self, message: str = "Token expired. Please log in again"):
        super().__init__(message)

class InvalidTokenError(UnauthorizedError):
    def __init__(self, message: str = "Invalid token. Please log in again"):
        super().__init__(message)

# ==== 403 ====

class ForbiddenError(BaseAppException):
    """Отказ по роли или владению, деактивированный аккаунт."""
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)

# ==== 404 ====

class NotFoundError(BaseAppException):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class UserNotFound(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)

class ProjectNotFound(NotFoundError):
    def __init__(self, message: str = "Project not found"):
        super().__init__(message)

class SprintNotFound(NotFoundError):
    def __init__(self, message: str = "Sprint not found"):
        super().__init__(message)

class TaskNotFound(NotFoundError):
    def __init__(self, message: str = "Task not found"):
        super().__init__(message)

class SubtaskNotFound(NotFoundError):
    def __init__(self, message: str = "Task or subtask not found"):
        super().__init__(message)

class CommentNotFound(NotFoundError):
    def __init__(self, message: str = "Comment not found"):
        super().__init__(message)

# ==== 409 ====

class ConflictError(BaseAppException):
    """Нарушение уникальности."""
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)

class DuplicateEmail(ConflictError):
    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)
