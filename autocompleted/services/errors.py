# autocompleted/services/errors.py
# Responsibility: Error taxonomy shared by the resolver and the HTTP layer.


class AutocompleteError(Exception):
    """Base class for failures that terminate an autocomplete request."""

    status_code = 500
    public_message = "internal error"

    def __init__(self, message: str = ""):
        self.message = message or self.public_message
        super().__init__(self.message)


class BadInput(AutocompleteError):
    """Client-caused failure (search input too short or too long). Never retried."""

    status_code = 400
    public_message = "bad request"


class ServerError(AutocompleteError):
    """Pool exhaustion, store failure or any other backend fault."""

    status_code = 500
    public_message = "internal error"


class StoreError(Exception):
    """Raised by the store client when a query against the database fails."""
