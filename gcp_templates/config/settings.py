"""
Configuration settings for the Pub/Sub and Vision templates.

Values come from environment variables (a local .env file is honoured),
optionally overridden by a YAML file. The service account key may be
fetched from Google Secret Manager.
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Optional, Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Secret Manager cache to avoid repeated API calls
_secrets_cache: Dict[str, str] = {}


def get_secret(secret_name: str, project_id: Optional[str] = None) -> Optional[str]:
    """
    Fetch a secret from Google Secret Manager.

    Args:
        secret_name: Name of the secret (e.g., 'pubsub-service-account')
        project_id: GCP project ID. If None, uses GCP_PROJECT_ID env var.

    Returns:
        Secret value as string, or None if it could not be fetched.
    """
    if secret_name in _secrets_cache:
        return _secrets_cache[secret_name]

    project = project_id or os.getenv('GCP_PROJECT_ID')
    if not project:
        logger.warning(f"Cannot fetch secret '{secret_name}': no project configured")
        return None

    from google.api_core.exceptions import GoogleAPICallError
    from google.cloud import secretmanager

    try:
        client = secretmanager.SecretManagerServiceClient()
        name = f"projects/{project}/secrets/{secret_name}/versions/latest"

        response = client.access_secret_version(request={"name": name})
        secret_value = response.payload.data.decode("UTF-8")
    except GoogleAPICallError as e:
        logger.warning(f"Could not fetch secret '{secret_name}' from Secret Manager: {e}")
        return None

    _secrets_cache[secret_name] = secret_value
    logger.info(f"Loaded secret '{secret_name}' from Secret Manager")
    return secret_value


@dataclass
class PublisherSettings:
    """Batching and ordering settings for publisher clients."""
    batch_max_messages: int = 100
    batch_max_bytes: int = 1_000_000
    batch_max_latency: float = 0.01  # seconds
    enable_message_ordering: bool = False


@dataclass
class SubscriberSettings:
    """Streaming and pull settings for subscriber clients."""
    flow_control_max_messages: int = 1000
    pull_timeout: float = 60.0  # seconds, per synchronous pull
    executor_threads: int = 4  # async pull / ack executor
    default_ack_deadline_seconds: int = 10


@dataclass
class PubSubConfig:
    """Cloud Pub/Sub configuration."""
    publisher: PublisherSettings = field(default_factory=PublisherSettings)
    subscriber: SubscriberSettings = field(default_factory=SubscriberSettings)


@dataclass
class VisionConfig:
    """Cloud Vision configuration."""
    api_endpoint: Optional[str] = None


@dataclass
class TemplatesConfig:
    """Top-level configuration."""
    gcp_project_id: Optional[str] = None
    service_account_json: Optional[str] = None
    pubsub: PubSubConfig = field(default_factory=PubSubConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes')


def _apply_section(target: Any, values: Optional[Dict[str, Any]]) -> None:
    """Copy known keys from a YAML mapping onto a settings dataclass."""
    for key, value in (values or {}).items():
        if not hasattr(target, key):
            logger.warning(f"Ignoring unknown setting '{key}' for {type(target).__name__}")
            continue
        setattr(target, key, value)


def load_config_file(
    config_path: str,
    base: Optional[TemplatesConfig] = None
) -> TemplatesConfig:
    """
    Load configuration overrides from a YAML file.

    Expected layout:

        gcp_project_id: my-project
        pubsub:
          publisher:
            batch_max_messages: 50
          subscriber:
            pull_timeout: 30
        vision:
          api_endpoint: eu-vision.googleapis.com

    Args:
        config_path: Path to the YAML file.
        base: Configuration to override. If None, defaults are used.

    Returns:
        The updated configuration.
    """
    config = base or TemplatesConfig()
    path = Path(config_path)

    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return config

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if data.get('gcp_project_id'):
        config.gcp_project_id = data['gcp_project_id']

    pubsub_data = data.get('pubsub') or {}
    _apply_section(config.pubsub.publisher, pubsub_data.get('publisher'))
    _apply_section(config.pubsub.subscriber, pubsub_data.get('subscriber'))
    _apply_section(config.vision, data.get('vision'))

    logger.info(f"Loaded template configuration from {path}")
    return config


def get_config() -> TemplatesConfig:
    """
    Create template configuration from environment variables.

    Environment variables:
        GCP_PROJECT_ID / GOOGLE_CLOUD_PROJECT: Google Cloud project ID
        GCP_SERVICE_ACCOUNT_JSON: Service account key JSON
        GCP_SERVICE_ACCOUNT_FILE: Path to a service account key file
        GCP_SERVICE_ACCOUNT_SECRET: Secret Manager secret holding the key JSON
        PUBSUB_BATCH_MAX_MESSAGES, PUBSUB_BATCH_MAX_BYTES, PUBSUB_BATCH_MAX_LATENCY
        PUBSUB_ENABLE_MESSAGE_ORDERING
        PUBSUB_FLOW_CONTROL_MAX_MESSAGES, PUBSUB_PULL_TIMEOUT,
        PUBSUB_EXECUTOR_THREADS, PUBSUB_ACK_DEADLINE_SECONDS
        VISION_API_ENDPOINT: Regional Vision endpoint override
        GCP_TEMPLATES_CONFIG_FILE: YAML file applied on top of the above
    """
    load_dotenv()

    project_id = os.getenv('GCP_PROJECT_ID') or os.getenv('GOOGLE_CLOUD_PROJECT')

    # Service account key: JSON string, key file, or Secret Manager.
    # None means Application Default Credentials.
    service_account_json = None
    if os.getenv('GCP_SERVICE_ACCOUNT_JSON'):
        service_account_json = os.getenv('GCP_SERVICE_ACCOUNT_JSON')
    elif os.getenv('GCP_SERVICE_ACCOUNT_FILE'):
        sa_file_path = os.getenv('GCP_SERVICE_ACCOUNT_FILE')
        if Path(sa_file_path).exists():
            with open(sa_file_path, 'r') as f:
                service_account_json = f.read()
            logger.info(f"Loaded service account from file: {sa_file_path}")
        else:
            logger.warning(f"Service account file not found: {sa_file_path}")
    elif os.getenv('GCP_SERVICE_ACCOUNT_SECRET'):
        service_account_json = get_secret(os.getenv('GCP_SERVICE_ACCOUNT_SECRET'), project_id)

    publisher = PublisherSettings(
        batch_max_messages=int(os.getenv('PUBSUB_BATCH_MAX_MESSAGES', '100')),
        batch_max_bytes=int(os.getenv('PUBSUB_BATCH_MAX_BYTES', '1000000')),
        batch_max_latency=float(os.getenv('PUBSUB_BATCH_MAX_LATENCY', '0.01')),
        enable_message_ordering=_env_bool('PUBSUB_ENABLE_MESSAGE_ORDERING', False)
    )

    subscriber = SubscriberSettings(
        flow_control_max_messages=int(os.getenv('PUBSUB_FLOW_CONTROL_MAX_MESSAGES', '1000')),
        pull_timeout=float(os.getenv('PUBSUB_PULL_TIMEOUT', '60')),
        executor_threads=int(os.getenv('PUBSUB_EXECUTOR_THREADS', '4')),
        default_ack_deadline_seconds=int(os.getenv('PUBSUB_ACK_DEADLINE_SECONDS', '10'))
    )

    config = TemplatesConfig(
        gcp_project_id=project_id,
        service_account_json=service_account_json,
        pubsub=PubSubConfig(publisher=publisher, subscriber=subscriber),
        vision=VisionConfig(api_endpoint=os.getenv('VISION_API_ENDPOINT'))
    )

    config_file = os.getenv('GCP_TEMPLATES_CONFIG_FILE')
    if config_file:
        config = load_config_file(config_file, base=config)

    return config
