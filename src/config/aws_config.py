"""
AWS Secrets Manager credential source

Optional alternative to environment variables for the wallet key and the
cached CLOB credential triple. Enabled by setting AWS_SECRET_ID.

Secret layout (JSON):
    {
        "WALLET_PRIVATE_KEY": "...",
        "POLY_API_KEY": "...",        # optional
        "POLY_API_SECRET": "...",     # optional
        "POLY_API_PASS": "..."        # optional
    }
"""

import json
from typing import Dict, Any, Optional
import boto3
from botocore.exceptions import ClientError

from utils.logger import get_logger
from utils.exceptions import ConfigurationError


logger = get_logger(__name__)


class AWSConfig:
    """Reads (and optionally updates) one JSON secret, cached after first read"""

    def __init__(self, secret_id: str, region: str):
        self.secret_id = secret_id
        self.region = region
        self._secrets_client = None
        self._secrets_cache: Optional[Dict[str, Any]] = None
        logger.info(f"AWS Config initialized for region: {self.region}")

    @property
    def secrets_client(self):
        """Lazy initialization of Secrets Manager client"""
        if self._secrets_client is None:
            try:
                self._secrets_client = boto3.client(
                    'secretsmanager',
                    region_name=self.region
                )
            except Exception as e:
                raise ConfigurationError(
                    f"AWS Secrets Manager client initialization failed: {e}"
                )
        return self._secrets_client

    def get_secrets(self, force_refresh: bool = False) -> Dict[str, Any]:
        """
        Retrieve the secret JSON with caching

        Raises:
            ConfigurationError: If the secret cannot be retrieved or parsed
        """
        if self._secrets_cache is not None and not force_refresh:
            return self._secrets_cache

        try:
            logger.info(f"Retrieving secrets from AWS Secrets Manager: {self.secret_id}")
            response = self.secrets_client.get_secret_value(SecretId=self.secret_id)

            if 'SecretString' not in response:
                raise ConfigurationError("Binary secrets not supported")
            secrets = json.loads(response['SecretString'])

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS Secrets Manager error: {error_code} - {error_message}")

            if error_code == 'ResourceNotFoundException':
                raise ConfigurationError(
                    f"Secret '{self.secret_id}' not found in region '{self.region}'"
                )
            elif error_code == 'AccessDeniedException':
                raise ConfigurationError(
                    f"Access denied to secret '{self.secret_id}'. Check IAM permissions."
                )
            raise ConfigurationError(
                f"Failed to retrieve secrets: {error_code} - {error_message}"
            )

        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Secret value is not valid JSON: {e}")

        self._secrets_cache = secrets
        return secrets

    def get_wallet_private_key(self) -> Optional[str]:
        return self.get_secrets().get('WALLET_PRIVATE_KEY')

    def get_api_credentials(self) -> Optional[tuple]:
        """(key, secret, passphrase) if all three are stored, else None"""
        secrets = self.get_secrets()
        triple = (
            secrets.get('POLY_API_KEY'),
            secrets.get('POLY_API_SECRET'),
            secrets.get('POLY_API_PASS'),
        )
        return triple if all(triple) else None

    def update_api_credentials(self, api_key: str, api_secret: str, api_passphrase: str) -> None:
        """
        Store a derived credential triple next to the wallet key.

        Raises:
            ConfigurationError: If the update fails
        """
        try:
            secrets = dict(self.get_secrets())
            secrets['POLY_API_KEY'] = api_key
            secrets['POLY_API_SECRET'] = api_secret
            secrets['POLY_API_PASS'] = api_passphrase

            self.secrets_client.update_secret(
                SecretId=self.secret_id,
                SecretString=json.dumps(secrets)
            )
        except ClientError as e:
            raise ConfigurationError(f"Failed to update API credentials: {e}")

        self._secrets_cache = None
        logger.info("L2 API credentials updated in Secrets Manager")
