"""Service account credentials for the default client factories."""

import json
import logging
from typing import Optional

from google.oauth2 import service_account

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = 'https://www.googleapis.com/auth/cloud-platform'


def load_credentials(
    service_account_json: Optional[str]
) -> Optional[service_account.Credentials]:
    """
    Build service account credentials.

    Args:
        service_account_json: Key JSON (string) or path to a key file.
            None selects Application Default Credentials.

    Returns:
        Credentials, or None to let the client libraries use ADC.
    """
    if not service_account_json:
        return None

    if service_account_json.lstrip().startswith('{'):
        credentials_info = json.loads(service_account_json)
    else:
        with open(service_account_json, 'r') as f:
            credentials_info = json.load(f)

    credentials = service_account.Credentials.from_service_account_info(
        credentials_info,
        scopes=[CLOUD_PLATFORM_SCOPE]
    )
    logger.info(f"Using service account {credentials.service_account_email}")
    return credentials
