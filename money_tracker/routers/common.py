from fastapi import HTTPException, status

VALIDATION_MESSAGE = "The given data was invalid."


def field_error(field: str, message: str) -> HTTPException:
    """A 400 shaped like a request validation failure, for checks that need the database"""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": VALIDATION_MESSAGE, "errors": {field: [message]}},
    )
