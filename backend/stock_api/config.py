import json
import os
import logging
from typing import Any, Dict, MutableMapping

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Load environment variables from .env file
basedir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..')) # Points to backend/
load_dotenv(os.path.join(basedir, '.env'))

# Secret keys that do not spell out the config attribute they fill
SECRET_ALIASES = {
    'database': 'DB_PATH',
    'region': 'AWS_REGION',
}

# Config values a secret may set; the server's own HOST and PORT are not among them
SECRET_SETTABLE = (
    'STORAGE_BACKEND', 'TABLE_NAME', 'LIST_LIMIT', 'DB_PATH',
    'AWS_REGION', 'AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY',
    'DYNAMODB_ENDPOINT_URL', 'DYNAMODB_MAX_POOL_CONNECTIONS',
)

# Must be positive integers
INT_SETTINGS = ('LIST_LIMIT', 'DYNAMODB_MAX_POOL_CONNECTIONS')


class Config:
    """Set Flask configuration variables from .env file."""

    # General Config
    FLASK_ENV = os.environ.get('FLASK_ENV', 'development') # development or production
    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '8000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Storage: 'duckdb' (relational) or 'dynamodb' (document store)
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'duckdb').lower()
    TABLE_NAME = os.environ.get('TABLE_NAME', 'stock_analysis_results')
    LIST_LIMIT = os.environ.get('LIST_LIMIT', '100')

    # DuckDB
    DB_PATH = os.environ.get('DB_PATH', os.path.join(basedir, 'data', 'stocks.db'))

    # AWS (DynamoDB, Secrets Manager)
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')
    AWS_ACCESS_KEY_ID = os.environ.get('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.environ.get('AWS_SECRET_ACCESS_KEY')
    DYNAMODB_ENDPOINT_URL = os.environ.get('DYNAMODB_ENDPOINT_URL') # e.g. http://localhost:8001 for DynamoDB Local
    DYNAMODB_MAX_POOL_CONNECTIONS = os.environ.get('DYNAMODB_MAX_POOL_CONNECTIONS', '10')
    AWS_SECRET_NAME = os.environ.get('AWS_SECRET_NAME')


def load_secret(secret_name: str, region: str) -> Dict[str, Any]:
    """Fetches a JSON secret from AWS Secrets Manager."""
    logger.info("Loading secret '%s' from Secrets Manager (%s)", secret_name, region)
    try:
        client = boto3.session.Session().client('secretsmanager', region_name=region)
        response = client.get_secret_value(SecretId=secret_name)
    except (BotoCoreError, ClientError) as e:
        raise ConfigError(f"Could not load secret '{secret_name}': {e}") from e

    try:
        secret = json.loads(response.get('SecretString') or '')
    except ValueError as e:
        raise ConfigError(f"Secret '{secret_name}' is not valid JSON: {e}") from e
    if not isinstance(secret, dict):
        raise ConfigError(f"Secret '{secret_name}' must be a JSON object.")
    return secret


def apply_secret(config: MutableMapping[str, Any], secret: Dict[str, Any]) -> None:
    """Overrides config values with the matching keys of a secret.

    Keys are matched case-insensitively against SECRET_SETTABLE. Anything else, including
    relational credentials such as host/user/password/port, is ignored.
    """
    for key, value in secret.items():
        name = SECRET_ALIASES.get(key.lower(), key.upper())
        if name not in SECRET_SETTABLE:
            logger.debug("Ignoring secret key '%s' (not a settable config value)", key)
            continue
        if name in INT_SETTINGS:
            value = positive_int(name, value)
        config[name] = value
        logger.info("Config value %s taken from secret", name)


def positive_int(name: str, value: Any) -> int:
    """Parses a config value that has to be a positive integer."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from None
    if number <= 0 or (isinstance(value, float) and value != number):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def check_config(config: MutableMapping[str, Any]) -> None:
    """Parses the integer settings in place; raises ConfigError on a bad value."""
    for name in INT_SETTINGS:
        config[name] = positive_int(name, config.get(name))
