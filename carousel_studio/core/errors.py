class GenerationRequestError(Exception):
    """A generation request rejected before any job is created."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(GenerationRequestError):
    status_code = 400


class PayloadTooLarge(GenerationRequestError):
    status_code = 413

    def __init__(self, message: str = "Payload too large"):
        super().__init__(message)
