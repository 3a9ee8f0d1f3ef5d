"""
Handle API authorisation for requesting access tokens to an API.
"""
import json
import logging
import os
from collections.abc import Mapping, Sequence, MutableMapping
from datetime import datetime
from typing import Any

import aiohttp
from aiohttp import ClientSession

from pairify.api.exception import AuthError
from pairify.log.logger import PairifyLogger
from pairify.utils import obfuscate


class APIAuthoriser:
    """
    Authorises and validates an API token for given input parameters.
    Functions for returning formatted headers for future, authorised requests.

    Any ``auth_args`` must be provided as a dictionary of parameters to be passed directly
    to :py:meth:`ClientSession.post` e.g.

    .. code-block:: python

        auth_args = {
            "url": token_url,
            "data": {"grant_type": "client_credentials"},
            "auth": aiohttp.BasicAuth(client_id, client_secret),
        }

    :param name: The name of the API service being accessed.
    :param auth_args: The parameters to be passed to the POST request for token authorisation.
        When not given, only the given or stored ``token`` can be used.
    :param test_expiry: The time allowance in seconds left until the token is due to expire to use when testing.
        A token which will expire within this allowance is considered invalid and is regenerated.
    :param token: Define a custom input token for initialisation.
    :param token_file_path: Path to use for loading and saving a token.
    :param token_key_path: Keys to the token in auth response. Looks for key 'access_token' by default.
    :param header_key: Header key to apply to headers for authorised calls to the API.
    :param header_prefix: Prefix to add to the header value for authorised calls to the API.
    """

    __slots__ = (
        "logger",
        "name",
        "auth_args",
        "test_expiry",
        "token",
        "token_file_path",
        "token_key_path",
        "header_key",
        "header_prefix",
    )

    @property
    def token_safe(self) -> dict[str, Any]:
        """Returns a reformatted token, making it safe to log by removing sensitive values at predefined keys."""
        if not self.token:
            return {}
        return {k: obfuscate(v) if str(k).endswith("_token") else v for k, v in self.token.items()}

    @property
    def headers(self) -> dict[str, str]:
        """
        Format headers to usage appropriate format

        :raise AuthError: If no token has been loaded,
            or a valid value was not found at the ``token_key_path`` within the token
        """
        if self.token is None:
            raise AuthError("Token not loaded.")

        token_value = self.token
        for key in self.token_key_path:  # get token key value at given path
            token_value = token_value.get(key, {})

        if not isinstance(token_value, str):
            raise AuthError(
                f"Did not find valid token at key path: {self.token_key_path} -> {token_value} | " +
                str(self.token_safe)
            )

        return {self.header_key: f"{self.header_prefix}{token_value}"}

    @classmethod
    def with_client_credentials(
            cls, name: str, token_url: str, client_id: str, client_secret: str, **kwargs
    ) -> "APIAuthoriser":
        """Create an authoriser which generates tokens through the client credentials flow"""
        auth_args = {
            "url": token_url,
            "data": {"grant_type": "client_credentials"},
            "auth": aiohttp.BasicAuth(client_id, client_secret),
        }
        return cls(name=name, auth_args=auth_args, **kwargs)

    def __init__(
            self,
            name: str,
            auth_args: MutableMapping[str, Any] | None = None,
            test_expiry: int = 0,
            token: Mapping[str, Any] | None = None,
            token_file_path: str | None = None,
            token_key_path: Sequence[str] = ("access_token",),
            header_key: str = "Authorization",
            header_prefix: str | None = "Bearer ",
    ):
        # noinspection PyTypeChecker
        #: The :py:class:`PairifyLogger` for this  object
        self.logger: PairifyLogger = logging.getLogger(__name__)
        self.name = name

        self.auth_args: MutableMapping[str, Any] | None = auth_args
        self.test_expiry: int = test_expiry

        self.token: Mapping[str, Any] | None = token
        self.token_file_path: str | None = token_file_path
        self.token_key_path: Sequence[str] = token_key_path

        self.header_key: str = header_key
        self.header_prefix: str = header_prefix or ""

    def load_token(self) -> Mapping[str, Any] | None:
        """Load stored token from given path"""
        if not self.token_file_path or not os.path.exists(self.token_file_path):
            return self.token

        self.logger.debug("Saved access token found. Loading stored token...")
        with open(self.token_file_path, "r") as file:
            self.token = json.load(file)
        return self.token

    def save_token(self) -> None:
        """Save new/updated token to given path"""
        if not self.token_file_path or not self.token:
            return

        self.logger.debug(f"Saving token: {self.token_safe}")
        with open(self.token_file_path, "w") as file:
            json.dump(self.token, file, indent=2)

    async def authorise(
            self, session: ClientSession, force_load: bool = False, force_new: bool = False
    ) -> dict[str, str]:
        """
        Main method for authorisation which tests/regenerates the token as needed.

        :param session: The session to use when requesting a new token.
        :param force_load: Reloads the token even if it's already been loaded into the object.
            Ignored when force_new is True.
        :param force_new: Ignore saved/loaded token and generate new token.
        :return: Headers for request authorisation.
        :raise AuthError: If the token cannot be generated or validated.
        """
        if force_new and self.auth_args:
            self.token = None
        elif self.token is None or force_load:
            self.load_token()

        if self.auth_args and not self.test_token():
            log = "Saved access token not found" if self.token is None else "Access token is not valid"
            self.logger.debug(f"{log}. Generating new token...")
            await self._request_token(session, **self.auth_args)

        if not self.token:
            raise AuthError(f"Token not generated for {self.name}. Provide a token or client credentials.")
        elif not self.test_token():
            raise AuthError(f"Token is not valid: {self.token_safe}")

        self.logger.debug("Access token is valid. Saving...")
        self.save_token()

        return self.headers

    async def _request_token(self, session: ClientSession, **request_args) -> dict[str, Any]:
        """
        Authenticates/refreshes basic API access and stores the returned token.

        :param session: The session to send the request with.
        :param request_args: :py:meth:`ClientSession.post` parameters to send as a request for authorisation.
        """
        try:
            async with session.post(**request_args) as response:
                auth_response = await response.json(content_type=None) or {}
        except aiohttp.ClientError as ex:
            raise AuthError(f"Could not request token for {self.name}: {ex}")

        # add granted and expiry times to token
        auth_response["granted_at"] = datetime.now().timestamp()
        if "expires_in" in auth_response:
            expires_at = auth_response["granted_at"] + float(auth_response["expires_in"])
            auth_response["expires_at"] = expires_at

        self.token = auth_response
        self.logger.debug(f"New token successfully generated: {self.token_safe}")
        return auth_response

    def test_token(self) -> bool:
        """Test validity of the token. Returns True if all tests pass, False otherwise"""
        if not self.token:
            return False

        token_has_no_error = "error" not in self.token
        self.logger.debug(f"Token contains no error test: {token_has_no_error}")
        if not token_has_no_error:
            return False

        return self._test_expiry()

    def _test_expiry(self) -> bool:
        """Check if the token is within accepted time range for expiry"""
        if "expires_at" not in self.token:
            return True

        result = datetime.now().timestamp() + self.test_expiry < self.token["expires_at"]
        self.logger.debug(f"Expiry time test: {result}")
        return result
