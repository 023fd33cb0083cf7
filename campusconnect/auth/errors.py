"""Errors raised across the identity provider boundary."""


class AuthError(Exception):
    """An identity provider call was rejected or could not be completed.

    ``code`` is a stable machine-readable reason (``invalid_credentials``,
    ``email_not_confirmed``, ``user_already_exists``, ``invalid_token``,
    ``session_expired``, ``not_authenticated``, ``provider_not_supported``,
    ``oauth_failed``, ``network_failure``); ``message`` is shown to users.
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"AuthError({self.code!r}, {self.message!r})"
