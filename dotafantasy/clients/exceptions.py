"""Exceptions raised by the provider clients."""


class ProviderError(Exception):
    """A provider request failed or returned an error payload."""

    def __init__(self, message: str, provider: str = '', status_code=None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
