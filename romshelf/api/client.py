"""IGDB API client implementation."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from romshelf.api.error_handler import (
    ErrorCategory,
    FatalAPIError,
    RetriesExhaustedError,
    RetryPolicy,
    categorize_status,
    get_error_message,
)
from romshelf.api.throttle import ThrottleManager

logger = logging.getLogger(__name__)


SEARCH_FIELDS = (
    "name, alternative_names.name, cover.*, genres.name, first_release_date, "
    "summary, storyline, platforms, involved_companies.company.name, "
    "involved_companies.publisher, involved_companies.developer, "
    "total_rating, total_rating_count, rating, rating_count, "
    "aggregated_rating, aggregated_rating_count, category, status, "
    "game_modes.name, keywords.name, age_ratings.*, collection.name, "
    "franchise.name, screenshots.image_id"
)
SEARCH_LIMIT = 50


def build_search_query(search_text: str) -> str:
    """
    Build the IGDB query body for a free-text game search.

    Args:
        search_text: Text to search for

    Returns:
        Query in IGDB's APICalypse syntax
    """
    escaped = search_text.replace('\\', '\\\\').replace('"', '\\"')
    return f'search "{escaped}"; fields {SEARCH_FIELDS}; limit {SEARCH_LIMIT};'


class IGDBClient:
    """
    Client for the IGDB games endpoint.

    Handles Twitch client-credentials authentication, concurrency and rate
    limiting through a ThrottleManager, and the retry loop for expired
    tokens and rate limiting. In offline mode no request is ever made.
    """

    TOKEN_URL = "https://id.twitch.tv/oauth2/token"
    GAMES_URL = "https://api.igdb.com/v4/games"

    def __init__(
        self,
        config: Dict[str, Any],
        throttle_manager: ThrottleManager,
        client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None
    ):
        """
        Initialize API client.

        Args:
            config: Configuration dictionary with igdb credentials
            throttle_manager: ThrottleManager instance for rate limiting
            client: httpx.AsyncClient to send requests with (required online)
            retry_policy: Retry behaviour (default: 2s backoff, no attempt cap)
        """
        igdb = config.get('igdb', {})
        self.client_id = igdb.get('client_id') or ''
        self.client_secret = igdb.get('client_secret') or ''
        self.offline = config.get('settings', {}).get('offline_mode', False)

        if retry_policy is None:
            backoff = config.get('api', {}).get('rate_limit_backoff_seconds', 2)
            retry_policy = RetryPolicy(rate_limit_backoff=float(backoff))
        self.retry_policy = retry_policy

        self.client = client
        self.throttle_manager = throttle_manager
        self.access_token: Optional[str] = None
        self._token_lock = asyncio.Lock()

        self.request_count = 0

    async def initialize(self) -> None:
        """
        Obtain the access token (no-op in offline mode).

        Raises:
            FatalAPIError: If credentials are missing or the token request fails
        """
        if self.offline:
            logger.info("Offline mode enabled, skipping IGDB authentication")
            return

        if not self.client_id or not self.client_secret:
            raise FatalAPIError(
                "IGDB credentials not set (igdb.client_id / igdb.client_secret)"
            )
        if self.client is None:
            raise FatalAPIError("No HTTP client configured for IGDB requests")

        self.access_token = await self._request_token()
        logger.info("Authenticated with IGDB")

    async def _request_token(self) -> str:
        """
        Request an app access token from the Twitch token endpoint.

        Raises:
            FatalAPIError: If the request fails or no token is returned
        """
        params = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'client_credentials',
        }
        try:
            response = await self.client.post(self.TOKEN_URL, params=params)
        except httpx.HTTPError as e:
            raise FatalAPIError(f"Failed to obtain IGDB access token: {e}") from e

        if response.status_code != 200:
            raise FatalAPIError(
                f"Failed to obtain IGDB access token: HTTP {response.status_code}"
            )

        try:
            token = response.json().get('access_token')
        except (ValueError, AttributeError):
            token = None
        if not token:
            raise FatalAPIError("Token endpoint response did not contain an access_token")

        return token

    async def _renew_token(self, stale_token: Optional[str]) -> bool:
        """
        Renew the access token unless another request already did.

        Returns:
            True if a usable token is available afterwards
        """
        async with self._token_lock:
            if self.access_token != stale_token:
                return True
            try:
                self.access_token = await self._request_token()
            except FatalAPIError as e:
                logger.error(f"Token renewal failed: {e}")
                return False
            logger.info("Access token renewed")
            return True

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        return {
            'Client-ID': self.client_id,
            'Authorization': f"Bearer {token}",
            'Accept': 'application/json',
            'Content-Type': 'text/plain',
        }

    async def search(self, search_text: str) -> List[Dict[str, Any]]:
        """
        Search IGDB games by free text.

        Args:
            search_text: Text to search for

        Returns:
            List of IGDB game objects (empty offline or on failure)
        """
        if self.offline:
            return []
        return await self.request(build_search_query(search_text))

    async def request(self, query: str) -> List[Dict[str, Any]]:
        """
        Send a query to the games endpoint.

        Holds one concurrency slot for the whole retry loop and takes one
        rate limit token per attempt. 401 renews the token and retries at
        once; 429 is reported to the throttle manager and retried after the
        policy's backoff. Any other failure is logged and yields [].

        Args:
            query: Query body

        Returns:
            List of IGDB game objects
        """
        if self.offline:
            return []

        async with self.throttle_manager.slot():
            attempt = 0
            while True:
                attempt += 1
                try:
                    self.retry_policy.check_attempt(attempt, self.GAMES_URL)
                except RetriesExhaustedError as e:
                    logger.error(str(e))
                    return []

                await self.throttle_manager.wait_for_token()
                token = self.access_token
                self.request_count += 1

                try:
                    response = await self.client.post(
                        self.GAMES_URL,
                        content=query.encode('utf-8'),
                        headers=self._headers(token)
                    )
                except httpx.HTTPError as e:
                    logger.error(f"IGDB request error: {type(e).__name__}: {e}")
                    return []

                category = categorize_status(response.status_code)

                if category == ErrorCategory.SUCCESS:
                    return self._parse_games(response)

                if category == ErrorCategory.AUTH_EXPIRED:
                    logger.info("Access token expired, requesting a new one")
                    if not await self._renew_token(token):
                        return []
                    continue

                if category == ErrorCategory.RATE_LIMITED:
                    logger.warning(
                        f"Received 429 from IGDB, retrying in "
                        f"{self.retry_policy.rate_limit_backoff:g}s"
                    )
                    self.throttle_manager.handle_rate_limit()
                    await asyncio.sleep(self.retry_policy.rate_limit_backoff)
                    continue

                logger.error(
                    f"IGDB request error: HTTP {response.status_code} - "
                    f"{get_error_message(response.status_code)}"
                )
                return []

    def _parse_games(self, response: httpx.Response) -> List[Dict[str, Any]]:
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from IGDB: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Unexpected IGDB response type: {type(data).__name__}")
            return []

        return [game for game in data if isinstance(game, dict)]
