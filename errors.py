class MessagingError(Exception):
    """Base class for failures a service reports back to the caller."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidInputError(MessagingError):
    status_code = 400


class ConflictError(MessagingError):
    # uniqueness violations on known paths are reported as bad requests
    status_code = 400


class ForbiddenError(MessagingError):
    status_code = 403


class NotFoundError(MessagingError):
    status_code = 404
