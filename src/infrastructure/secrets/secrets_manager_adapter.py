"""
Infrastructure adapter: AWS Secrets Manager -> ISecretStore.
See docs/Architecture.md (Infrastructure layer) for the architectural rationale.

Deployed consoles keep SESSION_SECRET and DATABASE_URL in one JSON secret.
merge_into_env() runs before Settings is built, so the values reach
pydantic-settings like any other environment variable. Variables already set
in the environment win unless *overwrite* is True.
"""

import json
import logging
import os
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.domain.errors import ConfigurationError
from src.domain.ports.secret_store_port import ISecretStore

logger = logging.getLogger(__name__)


class SecretsManagerAdapter(ISecretStore):
    def __init__(self, region: Optional[str] = None, client=None) -> None:
        self._client = client or boto3.client(
            "secretsmanager",
            region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
        )

    def get_secret(self, secret_id: str) -> dict[str, str]:
        """Fetch and decode a JSON secret.

        Raises:
            ConfigurationError: if the secret cannot be read or is not a JSON object.
        """
        try:
            response = self._client.get_secret_value(SecretId=secret_id)
        except (BotoCoreError, ClientError) as exc:
            raise ConfigurationError(f"cannot read secret {secret_id!r}: {exc}") from exc
        try:
            values = json.loads(response["SecretString"])
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(f"secret {secret_id!r} is not a JSON object") from exc
        if not isinstance(values, dict):
            raise ConfigurationError(f"secret {secret_id!r} is not a JSON object")
        return {str(k): str(v) for k, v in values.items()}

    def merge_into_env(self, secret_id: str, overwrite: bool = False) -> list[str]:
        """Copy the secret's keys into os.environ and return the keys applied."""
        applied = []
        for key, value in self.get_secret(secret_id).items():
            name = key.upper()
            if not overwrite and name in os.environ:
                continue
            os.environ[name] = value
            applied.append(name)
        logger.info("Loaded console secrets", extra={"keys": applied})
        return applied
