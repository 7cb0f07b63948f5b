"""Authentication module for loading Notion credentials.

This module handles loading the Notion integration token (and the default
root page id) from environment variables using python-dotenv. It validates
that the token is present and raises an appropriate error if it is missing.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

TOKEN_ENV_VAR = 'NOTION_API_TOKEN'
PAGE_ID_ENV_VAR = 'MD_TO_NOTION_PAGE_ID'


class Credentials(NamedTuple):
    """Notion API credentials."""
    api_token: str
    page_id: Optional[str] = None


class Authenticator:
    """Loads and validates Notion credentials from the environment.

    Credentials are loaded from a .env file using python-dotenv and are never
    logged. Values passed explicitly (e.g. from command-line options) take
    precedence over environment variables.

    Environment variables:
        NOTION_API_TOKEN: Notion internal integration token (required)
        MD_TO_NOTION_PAGE_ID: Default root page id (optional)

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
    """

    def __init__(self, api_token: Optional[str] = None, page_id: Optional[str] = None):
        """Initialize the authenticator by loading environment variables from .env file.

        Args:
            api_token: Explicit token overriding NOTION_API_TOKEN
            page_id: Explicit root page id overriding MD_TO_NOTION_PAGE_ID
        """
        load_dotenv()
        self._api_token = api_token
        self._page_id = page_id

    def get_credentials(self) -> Credentials:
        """Get Notion credentials.

        Returns:
            Credentials: A named tuple containing api_token and page_id

        Raises:
            InvalidCredentialsError: If no API token is configured
        """
        api_token = self._api_token or os.getenv(TOKEN_ENV_VAR)
        page_id = self._page_id or os.getenv(PAGE_ID_ENV_VAR)

        if not api_token:
            raise InvalidCredentialsError(
                f"Notion API token is missing (pass --token or set {TOKEN_ENV_VAR})"
            )

        return Credentials(api_token=api_token, page_id=page_id or None)
