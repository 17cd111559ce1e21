class CurrencyException(Exception):
    pass


class InvalidCurrencyError(CurrencyException):
    """Currency code outside the configured supported set."""


class ProviderError(CurrencyException):
    """Upstream rate API failed: network, HTTP status, or unusable body."""


class CacheError(CurrencyException):
    """Persisted rate snapshot could not be read or written."""
