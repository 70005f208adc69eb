from __future__ import annotations


class PrintStudioError(Exception):
    """Base error; `status_code` is what the HTTP layer should answer with."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = int(status_code)


class ConfigurationError(PrintStudioError):
    """Missing or invalid physical dimensions / render options."""

    status_code = 400


class AssetError(PrintStudioError):
    """Wall reference or artwork file not found or unreadable."""

    status_code = 404


class RenderBackendError(PrintStudioError):
    status_code = 502


class CatalogError(PrintStudioError):
    status_code = 502
