class CatalogError(Exception):
    pass


class NotFound(CatalogError):
    """Requested entity/row does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StorageError(CatalogError):
    """Wraps any lower-level database failure. Never retried."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
