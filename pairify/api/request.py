"""
All operations relating to handling of requests to an API.
"""
import asyncio
import json
import logging
from collections.abc import Mapping, Callable
from datetime import datetime, timedelta
from http import HTTPStatus
from typing import Any, Self
from urllib.parse import unquote

import aiohttp
from aiohttp import ClientResponse, ClientSession
from yarl import URL

from pairify.api.authorise import APIAuthoriser
from pairify.api.exception import APIError, AuthError, NetworkError, NotFoundError, RequestError
from pairify.log.logger import PairifyLogger


class RequestHandler:
    """
    Generic API request handler.
    Handles error responses and backoff on failed requests,
    mapping failures to typed errors callers can branch on.
    See :py:class:`APIAuthoriser` for more info on which params to pass to authorise requests.

    :param connector: When called, returns a new session to use when making requests.
    :param authoriser: The authoriser to use when authorising requests to the API.
    """

    __slots__ = (
        "logger",
        "_connector",
        "_session",
        "authoriser",
        "backoff_start",
        "backoff_factor",
        "backoff_count",
        "wait_time",
        "wait_increment",
    )

    #: Status codes which indicate the requested resource could not be found
    not_found_status = frozenset({HTTPStatus.BAD_REQUEST, HTTPStatus.NOT_FOUND})

    @property
    def backoff_final(self) -> float:
        """
        The maximum wait time to retry a request in seconds
        until giving up when applying backoff to failed requests
        """
        return self.backoff_start * self.backoff_factor ** self.backoff_count

    @property
    def timeout(self) -> int:
        """
        When the response gives a time to wait until (i.e. retry-after),
        the program will exit if this time is above this timeout (in seconds)
        """
        return int(sum(self.backoff_start * self.backoff_factor ** i for i in range(self.backoff_count + 1)))

    @property
    def closed(self):
        """Is the stored client session closed."""
        return self._session is None or self._session.closed

    @property
    def session(self) -> ClientSession:
        """The :py:class:`ClientSession` object if it exists and is open."""
        if not self.closed:
            return self._session

    @classmethod
    def create(cls, authoriser: APIAuthoriser | None = None, **session_kwargs):
        """Create a new :py:class:`RequestHandler` with an appropriate session ``connector`` given the input kwargs"""
        def connector() -> ClientSession:
            """Create an appropriate session ``connector`` given the input kwargs"""
            return ClientSession(**session_kwargs)

        return cls(connector=connector, authoriser=authoriser)

    def __init__(self, connector: Callable[[], ClientSession], authoriser: APIAuthoriser | None = None):
        # noinspection PyTypeChecker
        #: The :py:class:`PairifyLogger` for this  object
        self.logger: PairifyLogger = logging.getLogger(__name__)

        self._connector = connector
        self._session: ClientSession | None = None

        #: The :py:class:`APIAuthoriser` object
        self.authoriser = authoriser

        #: The initial backoff time in seconds for failed requests
        self.backoff_start = 0.2
        #: The factor by which to increase backoff time for failed requests i.e. backoff_start ** backoff_factor
        self.backoff_factor = 1.932
        #: The maximum number of request attempts to make before giving up and raising an exception
        self.backoff_count = 5

        #: The initial time in seconds to wait after receiving a response from a request
        self.wait_time = 0
        #: The amount to increase the wait time by each time a rate limit is hit i.e. 429 response
        self.wait_increment = 0.1

    async def __aenter__(self) -> Self:
        if self.closed:
            self._session = self._connector()

        await self.session.__aenter__()
        try:
            await self.authorise()
        except APIError as ex:
            await self.__aexit__(type(ex), ex, ex.__traceback__)
            raise

        return self

    async def __aexit__(self, __exc_type, __exc_value, __traceback) -> None:
        await self.session.__aexit__(__exc_type, __exc_value, __traceback)
        self._session = None

    async def authorise(self, force_load: bool = False, force_new: bool = False) -> dict[str, str]:
        """
        Method for API authorisation which tests/refreshes/reauthorises as needed.

        :param force_load: Reloads the token even if it's already been loaded into the object.
            Ignored when force_new is True.
        :param force_new: Ignore saved/loaded token and generate new token.
        :return: Headers for request authorisation.
        :raise RequestError: If the session is closed.
        :raise AuthError: If the token cannot be validated.
        """
        if self.closed:
            raise RequestError("Session is closed. Enter the API context to start a new session.")

        headers = {}
        if self.authoriser is not None:
            headers = await self.authoriser.authorise(self.session, force_load=force_load, force_new=force_new)
            self.session.headers.update(headers)

        return headers

    async def close(self) -> None:
        """Close the current session. No more requests will be possible once this has been called."""
        await self.session.close()

    async def request(self, method: str, url: str | URL, log_message: str | list[str] = None, **kwargs) -> dict:
        """
        Generic method for handling API requests with back-off on failed requests.

        :param method: method for the request:
            ``GET``, ``OPTIONS``, ``HEAD``, ``POST``, ``PUT``, ``PATCH``, or ``DELETE``.
        :param url: URL to call.
        :param log_message: Optional extra message(s) to log alongside the request.
        :return: The JSON formatted response or, if JSON formatting not possible, an empty dict.
        :raise NotFoundError: When the resource at the given URL does not exist.
        :raise AuthError: When the request is still unauthorised after re-authorising.
        :raise NetworkError: When the request keeps failing after all backoff attempts are exhausted.
        :raise APIError: On any other logic breaking error/response.
        """
        if self.closed:
            raise RequestError("Session is closed. Enter the API context to start a new session.")

        backoff = self.backoff_start
        reauthorised = False

        while True:
            self._log_request(method=method, url=url, message=log_message, **kwargs)

            try:
                async with self.session.request(method=method.upper(), url=url, **kwargs) as response:
                    if response.ok:
                        data = await self._get_json_response(response)
                        await asyncio.sleep(self.wait_time)
                        return data

                    await self._log_response(response=response, method=method, url=url)

                    if response.status == HTTPStatus.UNAUTHORIZED:
                        if reauthorised:
                            raise AuthError("Request still unauthorised after re-authorising", response=response)
                        self.logger.debug(f"Status code: {response.status} | Re-authorising...")
                        await self.authorise(force_new=True)
                        reauthorised = True
                        continue

                    await self._handle_bad_response(response=response)
                    if await self._wait_for_rate_limit_timeout(response=response):
                        continue

                    failure = f"Status code: {response.status}"
            except (aiohttp.ClientError, asyncio.TimeoutError) as ex:
                self.logger.debug(str(ex) or ex.__class__.__name__)
                failure = str(ex) or ex.__class__.__name__

            if backoff > self.backoff_final or backoff == 0:
                raise NetworkError(f"Max retries exceeded | {failure}")

            # exponential backoff
            self.log(method=method, url=url, message=f"Request failed: retrying in {backoff:.2f} seconds...")
            await asyncio.sleep(backoff)
            backoff *= self.backoff_factor

    def _log_request(self, method: str, url: str | URL, message: str | list[str] | None = None, **kwargs) -> None:
        if isinstance(message, str):
            message = [message]
        self.log(method=method, url=url, message=message, **kwargs)

    def log(
            self, method: str, url: str | URL, message: str | list = None, level: int = logging.DEBUG, **kwargs
    ) -> None:
        """Format and log a request or request adjacent message to the given ``level``."""
        log: list[Any] = []

        url = URL(url)
        if url.query:
            log.extend(f"{k}: {unquote(v):<4}" for k, v in sorted(url.query.items()))
        if kwargs.get("params"):
            log.extend(f"{k}: {v!s:<4}" for k, v in sorted(kwargs["params"].items()))
        if kwargs.get("json"):
            log.extend(f"{k}: {str(v):<4}" for k, v in sorted(kwargs["json"].items()))
        if message:
            log.append(message) if isinstance(message, str) else log.extend(message)

        url = str(url.with_query(None))
        url_pad_map = [30, 40, 70, 100]
        url_pad = next((pad for pad in url_pad_map if len(url) < pad), url_pad_map[-1])

        self.logger.log(
            level=level, msg=f"{method.upper():<7}: {url:<{url_pad}} | {' | '.join(map(str, log))}"
        )

    async def _log_response(self, response: ClientResponse, method: str, url: str | URL) -> None:
        """Log the method, URL, response text, and response headers."""
        response_headers = response.headers
        if isinstance(response.headers, Mapping):  # format headers if JSON
            response_headers = json.dumps(dict(response.headers), indent=2)
        response_text = (await response.text()).replace("\n", "\n\t")
        response_headers = response_headers.replace("\n", "\n\t")
        self.log(
            method=method,
            url=url,
            message=[
                f"Status code: {response.status}",
                "Response text and headers follow:\n"
                f"Response text:\n\t{response_text}\n"
                f"Headers:\n\t{response_headers}"
            ]
        )

    async def _handle_bad_response(self, response: ClientResponse) -> None:
        """
        Handle bad responses by extracting message and handling status codes that should raise an exception.
        Rate limited responses increase the wait time between requests and are retried with backoff.

        :raise NotFoundError: When the status code shows the resource could not be found.
        :raise APIError: On any other client error.
        """
        error_message = (await self._get_json_response(response)).get("error", {})
        if isinstance(error_message, Mapping):
            error_message = error_message.get("message")
        if not error_message and response.status in HTTPStatus:
            status = HTTPStatus(response.status)
            error_message = f"{status.phrase} | {status.description}"

        if response.status == HTTPStatus.TOO_MANY_REQUESTS:
            self.wait_time += self.wait_increment
            self.logger.debug(
                f"Status code: {response.status} | {error_message} | "
                f"Rate limit hit. Increasing wait time between requests to {self.wait_time}"
            )
        elif response.status in self.not_found_status:
            raise NotFoundError(error_message, response=response)
        elif 400 <= response.status < 500:
            raise APIError(error_message, response=response)

    async def _wait_for_rate_limit_timeout(self, response: ClientResponse) -> bool:
        """Handle rate limits when a 'retry-after' time is included in the response headers."""
        if "retry-after" not in response.headers:
            return False

        wait_time = int(response.headers["retry-after"])
        wait_str = (datetime.now() + timedelta(seconds=wait_time)).strftime("%Y-%m-%d %H:%M:%S")

        if wait_time > self.timeout:  # exception if too long
            raise NetworkError(
                f"Rate limit exceeded and wait time is greater than timeout of {self.timeout} seconds. "
                f"Retry again at {wait_str}"
            )

        self.logger.info_extra(f"Rate limit exceeded. Retrying again at {wait_str}")
        await asyncio.sleep(wait_time)
        return True

    @staticmethod
    async def _get_json_response(response: ClientResponse) -> dict[str, Any]:
        """Format the response to JSON and handle any errors"""
        try:
            data = await response.json()
            return data if isinstance(data, dict) else {}
        except (aiohttp.ContentTypeError, json.decoder.JSONDecodeError):
            return {}

    async def get(self, url: str | URL, **kwargs) -> dict[str, Any]:
        """Sends a GET request."""
        kwargs.pop("method", None)
        return await self.request("get", url=url, **kwargs)

