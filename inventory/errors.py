class InventoryError(Exception):
    """Base error; message is safe to show to clients"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    status_code = 400


class AuthenticationError(InventoryError):
    status_code = 401


class NotFoundError(InventoryError):
    status_code = 404


class ConflictError(InventoryError):
    status_code = 409


class StorageError(InventoryError):
    status_code = 500
