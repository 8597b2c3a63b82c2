# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    EMPTY_MESSAGE = ErrorInfo("Message is required", status.HTTP_400_BAD_REQUEST)
    GENERIC_APOLOGY = ErrorInfo(
        "I'm having trouble processing that right now. Please try again!",
        status.HTTP_200_OK,
    )
