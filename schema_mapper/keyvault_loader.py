"""
Load environment variables from Azure Key Vault, with optional per-user overrides.
Falls back to .env when Key Vault is not configured or unreachable.
"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Known env vars to fetch from Key Vault (in lookup order for per-user)
ENV_VARS = (
    "SOURCE_DATABASE_URL",
    "META_DATABASE_URL",
    "SOURCE_DB_TYPE",
    "TARGET_DB_TYPE",
    "SOURCE_SCHEMA",
    "TARGET_SCHEMA",
    "MAPPER_THREADS",
    "DEFAULT_SENSITIVE_TYPES",
    "API_AUTH_TOKEN",
)


def _env_to_secret_name(env_key: str) -> str:
    """Convert env var name to Key Vault secret name (underscores -> hyphens)."""
    return env_key.replace("_", "-")


def _load_from_dotenv() -> None:
    """Load .env from the working directory or the project root; existing vars win."""
    for base in (Path.cwd(), Path(__file__).resolve().parent.parent):
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)
            return


def load_env() -> None:
    """
    Load env vars from Azure Key Vault (or .env fallback).
    - KEYVAULT_NAME: vault name (required for Key Vault)
    - AZURE_USER_NAME: optional; use {VAR}-{USER} secrets first, then {VAR}
    - Does not overwrite existing os.environ values (allows CLI overrides)
    """
    # KEYVAULT_NAME itself may live in .env
    _load_from_dotenv()
    vault_name = os.environ.get("KEYVAULT_NAME", "").strip()
    user_name = os.environ.get("AZURE_USER_NAME", "").strip().upper()
    if not vault_name:
        return

    from azure.core.exceptions import AzureError
    from azure.identity import DefaultAzureCredential
    from azure.keyvault.secrets import SecretClient

    client = SecretClient(
        vault_url=f"https://{vault_name}.vault.azure.net/",
        credential=DefaultAzureCredential(),
    )
    for var in ENV_VARS:
        if var in os.environ:
            continue  # Do not overwrite (CLI override)
        base_name = _env_to_secret_name(var)
        secret_names = [f"{base_name}-{user_name}", base_name] if user_name else [base_name]
        for name in secret_names:
            try:
                secret = client.get_secret(name)
            except AzureError as e:
                logger.debug(f"Key Vault secret {name} unavailable: {e}")
                continue
            if secret and secret.value:
                os.environ[var] = secret.value
                break
