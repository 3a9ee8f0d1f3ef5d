"""
Exceptions relating to API operations.
"""
from aiohttp import ClientResponse

from pairify.exception import PairifyError


class APIError(PairifyError):
    """
    Exception raised for API errors.

    :param message: Explanation of the error.
    :param response: The :py:class:`ClientResponse` related to the error.
    """

    def __init__(self, message: str | None = None, response: ClientResponse | None = None):
        self.message = message
        self.response = response
        formatted = f"Status code: {response.status} | {message}" if response else message
        super().__init__(formatted)


class RequestError(APIError):
    """Exception raised for errors relating to requests to an API."""


class NotFoundError(APIError):
    """Exception raised when the requested resource does not exist on the remote service."""


class NetworkError(APIError):
    """Exception raised for transient failures e.g. connection errors or repeated server errors."""


class AuthError(APIError):
    """Exception raised when the API cannot be authorised. Fatal until re-authorised."""
