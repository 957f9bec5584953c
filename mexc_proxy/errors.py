"""Error taxonomy shared by the services and the API layer.

Each error carries the HTTP status it maps to and a message that is safe to
return to the client. Errors raised during credential handling keep their
internal detail in ``str(exc)`` for the logs only.
"""


class ProxyError(Exception):
    status_code: int = 500
    public_message: str | None = None

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message or self.__class__.__name__)
        if self.public_message is None:
            self.public_message = str(self)


class Unauthorized(ProxyError):
    status_code = 401
    public_message = "Unauthorized"


class Forbidden(ProxyError):
    status_code = 403
    public_message = "Forbidden"


class ValidationError(ProxyError):
    status_code = 400


class NotConnected(ProxyError):
    status_code = 404
    public_message = "Not connected"


class IntegrityError(ProxyError):
    """Stored credentials failed authenticated decryption."""

    status_code = 500
    public_message = "Internal server error"


class PersistenceError(ProxyError):
    status_code = 500
    public_message = "Internal server error"


class ExchangeRejected(ProxyError):
    """The exchange declined the request; its message is passed through."""

    status_code = 500


class ExchangeUnavailable(ExchangeRejected):
    """No usable answer from the exchange (network error, timeout or 5xx gateway page).

    Whether the exchange acted on it is unknown.
    """
