from fastapi import status


class StringAnalyzerError(Exception):
    """Base class for errors reported back to the client"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class BadRequestError(StringAnalyzerError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"


class UnparseableQueryError(BadRequestError):
    """Raised when no natural language rule recognizes the query"""


class UnprocessableError(StringAnalyzerError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error = "Unprocessable Entity"


class ConflictError(StringAnalyzerError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class NotFoundError(StringAnalyzerError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"


class InternalError(StringAnalyzerError):
    pass
