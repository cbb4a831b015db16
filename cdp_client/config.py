"""
Credential and network configuration for the CDP client.
"""

import os
from dataclasses import dataclass, field
from typing import Dict

from cdp_client.constants import (
    BASE_MAINNET,
    BASE_SEPOLIA,
    USDC_BASE,
    USDC_BASE_SEPOLIA,
    USDC_DECIMALS,
)
from cdp_client.exceptions import ConfigurationError

# Environment variable names for each credential field
ENV_VARS = {
    "api_key_id": "CDP_API_KEY_NAME",
    "api_key_material": "CDP_API_KEY_PRIVATE_KEY",
    "wallet_secret": "CDP_WALLET_SECRET",
    "account_address": "CDP_ACCOUNT_ADDRESS",
}


@dataclass(frozen=True)
class CdpCredentials:
    """The four opaque strings a client is constructed from."""

    api_key_id: str
    api_key_material: str = field(repr=False)
    wallet_secret: str = field(repr=False)
    account_address: str

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "CdpCredentials":
        """Read credentials from environment variables.

        Args:
            dotenv: Load a ``.env`` file from the working directory first.

        Returns:
            The credential bundle.

        Raises:
            ConfigurationError: If any variable is missing or empty.
        """
        if dotenv:
            from dotenv import find_dotenv, load_dotenv

            load_dotenv(find_dotenv(usecwd=True))

        values: Dict[str, str] = {}
        missing = []
        for attr, var in ENV_VARS.items():
            value = os.environ.get(var, "")
            if not value:
                missing.append(var)
            values[attr] = value

        if missing:
            raise ConfigurationError(
                f"Missing CDP environment variables: {', '.join(missing)}"
            )
        return cls(**values)


@dataclass(frozen=True)
class NetworkConfig:
    """Per-network settings."""

    name: str
    chain_id: int
    usdc_address: str
    usdc_decimals: int = USDC_DECIMALS


NETWORK_CONFIGS: Dict[str, NetworkConfig] = {
    "base": NetworkConfig(
        name="base",
        chain_id=BASE_MAINNET,
        usdc_address=USDC_BASE,
    ),
    "base-sepolia": NetworkConfig(
        name="base-sepolia",
        chain_id=BASE_SEPOLIA,
        usdc_address=USDC_BASE_SEPOLIA,
    ),
}


def get_network_config(network: str) -> NetworkConfig:
    """Get the configuration for a network.

    Args:
        network: The CDP network name ("base" or "base-sepolia").

    Returns:
        The network configuration.

    Raises:
        ConfigurationError: If the network is not supported.
    """
    config = NETWORK_CONFIGS.get(network)
    if config is None:
        supported = ", ".join(sorted(NETWORK_CONFIGS))
        raise ConfigurationError(
            f"Unsupported network: {network}. Supported: {supported}"
        )
    return config
