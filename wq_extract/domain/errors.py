"""Domain errors."""


class DomainError(Exception):
    """Base domain error."""


class RetrievalError(DomainError):
    """Catalog or dataset could not be retrieved."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(f"{message} (url: {url})")
        self.url = url


class MalformedDatasetError(DomainError):
    """Opened dataset lacks expected content or is inconsistent."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(f"{message} (url: {url})" if url else message)
        self.url = url


class ValidationError(DomainError):
    """Invalid extraction request."""
