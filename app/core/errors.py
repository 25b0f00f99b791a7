class SignedRequestError(Exception):
    """Rejection of an inbound deletion callback, reported synchronously."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class MalformedInput(SignedRequestError):
    status_code = 400

class InvalidSignature(SignedRequestError):
    status_code = 403

class MissingUserId(SignedRequestError):
    status_code = 400

class StoreError(Exception):
    """The record store could not complete a read or write."""
