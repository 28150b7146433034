"""SSM Parameter Store access for the monitor's secrets.

Secrets normally come from the environment. When ``SSM_PARAMETER_PREFIX`` is
set, the ones still missing are read here in a single batch under that prefix
(``stripe/secret_key``, ``airtable/api_key``, ...).
"""

from functools import lru_cache
from typing import ClassVar, Iterable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from payment_monitor.utils.logging import get_logger

logger = get_logger(__name__)

# GetParameters accepts at most this many names per call
MAX_BATCH_SIZE = 10


class SSMServiceError(Exception):
    """Raised when Parameter Store cannot be read."""

    pass


def _describe(e: ClientError, what: str) -> SSMServiceError:
    code = e.response.get("Error", {}).get("Code", "Unknown")
    if code == "ParameterNotFound":
        return SSMServiceError(f"SSM parameter not found: {what}")
    if code == "AccessDeniedException":
        return SSMServiceError(f"Access denied to SSM parameter {what}; check ssm:GetParameters")
    return SSMServiceError(f"Failed to read SSM parameter {what}: {e}")


class SSMService:
    """Reads decrypted SecureString values, cached for the process lifetime.

    Usage:
        secrets = get_ssm_service().get_parameters(
            ["/payment-monitor/prod/stripe/secret_key", "/payment-monitor/prod/airtable/api_key"]
        )
    """

    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        self._client = boto3.client("ssm")

    def get_parameters(self, names: Iterable[str]) -> dict[str, str]:
        """Read several parameters, one GetParameters call per batch.

        Returns:
            Values keyed by full parameter name. Names that do not exist are
            left out and logged.

        Raises:
            SSMServiceError: If the call itself fails (credentials, IAM).
        """
        names = list(dict.fromkeys(names))
        found = {name: self._cache[name] for name in names if name in self._cache}
        pending = [name for name in names if name not in found]

        for start in range(0, len(pending), MAX_BATCH_SIZE):
            batch = pending[start : start + MAX_BATCH_SIZE]
            try:
                response = self._client.get_parameters(Names=batch, WithDecryption=True)
            except ClientError as e:
                raise _describe(e, ", ".join(batch)) from e
            except BotoCoreError as e:
                raise SSMServiceError(f"Failed to read SSM parameters: {e}") from e

            for parameter in response.get("Parameters", []):
                found[parameter["Name"]] = self._cache[parameter["Name"]] = parameter["Value"]
            for missing in response.get("InvalidParameters", []):
                logger.warning("SSM parameter not found: %s", missing)

        return found

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Read one parameter.

        Raises:
            SSMServiceError: If the parameter is missing or unreadable.
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            raise _describe(e, name) from e
        except BotoCoreError as e:
            raise SSMServiceError(f"Failed to read SSM parameter {name}: {e}") from e

        value = self._cache[name] = response["Parameter"]["Value"]
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService()
