"""Custom exceptions."""


class PageCacheError(Exception):
    """Base class for all package errors."""


class ConfigError(PageCacheError):
    """Raised when configuration loading fails."""


class DocumentOpenError(PageCacheError):
    """Raised when a document cannot be opened. Terminal for that document."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class DocumentUnreadableError(DocumentOpenError):
    """Raised when the file is missing, corrupt or not a supported document."""


class DocumentLockedError(DocumentOpenError):
    """Raised when an encrypted document cannot be unlocked with the given password."""


class PageRenderError(PageCacheError):
    """Per-page failure. Reported through RenderResult rather than raised to callers."""

    def __init__(self, page_index: int, message: str):
        super().__init__(f"page {page_index}: {message}")
        self.page_index = page_index


class PageOutOfRangeError(PageRenderError):
    def __init__(self, page_index: int, page_count: int):
        super().__init__(page_index, f"out of range (document has {page_count} pages)")
        self.page_count = page_count


class RenderFailureError(PageRenderError):
    """Raised when page content cannot be rasterized."""


class SourceUnavailableError(PageRenderError):
    """Raised when the page source cannot supply geometry or content."""


class RenderCancelledError(PageRenderError):
    """Raised for requests dropped because the document was closed."""


__all__ = [
    "PageCacheError",
    "ConfigError",
    "DocumentOpenError",
    "DocumentUnreadableError",
    "DocumentLockedError",
    "PageRenderError",
    "PageOutOfRangeError",
    "RenderFailureError",
    "SourceUnavailableError",
    "RenderCancelledError",
]
