from __future__ import annotations


class CatalogRenderError(Exception):
    """Base class for every error raised while rendering a catalog document."""

    user_message = 'Failed to generate the PDF. Please try again.'


class ResourceError(CatalogRenderError):
    """An item image could not be loaded. Recovered per item, never surfaced."""

    def __init__(self, url: str, reason: str):
        super().__init__(f'{reason}: {url}')
        self.url = url
        self.reason = reason


class ResourceTimeoutError(ResourceError):
    pass


class ResourceNetworkError(ResourceError):
    pass


class ResourceDecodeError(ResourceError):
    pass


class EmptyInputError(CatalogRenderError):
    user_message = 'There are no products to download.'


class OverallTimeoutError(CatalogRenderError):
    user_message = 'PDF generation timed out. Please try again.'

    def __init__(self, timeout_seconds: float):
        super().__init__(f'PDF generation exceeded {timeout_seconds:g} seconds')
        self.timeout_seconds = timeout_seconds


class GenerationInProgressError(CatalogRenderError):
    user_message = 'This PDF is already being generated. Please wait for it to finish.'


class RenderCancelledError(CatalogRenderError):
    pass


def user_message(exc: BaseException) -> str:
    if isinstance(exc, CatalogRenderError):
        return exc.user_message
    return CatalogRenderError.user_message
