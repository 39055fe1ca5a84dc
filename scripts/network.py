"""
Network configuration shared by the Charity Campaigns scripts.

Settings come from environment variables; a .env file in the working
directory is loaded on import.

Environment variables:
- ALGOD_SERVER / ALGOD_TOKEN: Algorand node
- KMD_SERVER / KMD_TOKEN: LocalNet key management daemon
- NETWORK: localnet | testnet | mainnet
- DEPLOYER_MNEMONIC: 25-word mnemonic of the operator account
- CHARITY_APP_ID: Application ID (falls back to the deployment file)
- BUILD_DIR: Directory holding the compiled TEAL
"""

import json
import os
from pathlib import Path

from dotenv import load_dotenv
from algosdk import account, mnemonic
from algosdk import kmd
from algosdk.v2client import algod

load_dotenv()


LOCALNET_WALLET = "unencrypted-default-wallet"


def get_network() -> str:
    return os.getenv("NETWORK", "localnet")


def get_algod_client() -> algod.AlgodClient:
    """Create Algorand client from environment variables."""
    server = os.getenv("ALGOD_SERVER", "http://localhost:4001")
    token = os.getenv("ALGOD_TOKEN", "a" * 64)
    return algod.AlgodClient(token, server)


def get_kmd_client() -> kmd.KMDClient:
    """Create KMD client for LocalNet."""
    server = os.getenv("KMD_SERVER", "http://localhost:4002")
    token = os.getenv("KMD_TOKEN", "a" * 64)
    return kmd.KMDClient(token, server)


def get_deployer_account() -> tuple[str, str]:
    """
    Get the operator account from DEPLOYER_MNEMONIC.

    Returns:
        Tuple of (private_key, address)
    """
    mnemonic_phrase = os.getenv("DEPLOYER_MNEMONIC")
    if not mnemonic_phrase:
        raise ValueError("DEPLOYER_MNEMONIC not set in environment")

    private_key = mnemonic.to_private_key(mnemonic_phrase)
    address = account.address_from_private_key(private_key)
    return private_key, address


def get_localnet_accounts(kmd_client: kmd.KMDClient, count: int) -> list[tuple[str, str]]:
    """
    Load funded accounts from LocalNet's default wallet.

    Args:
        kmd_client: KMD client instance
        count: Maximum number of accounts to return

    Returns:
        List of (private_key, address)
    """
    wallet_id = None
    for wallet in kmd_client.list_wallets():
        if wallet["name"] == LOCALNET_WALLET:
            wallet_id = wallet["id"]
            break
    if wallet_id is None:
        raise ValueError("Default wallet not found. Make sure LocalNet is running.")

    wallet_handle = kmd_client.init_wallet_handle(wallet_id, "")
    try:
        addresses = kmd_client.list_keys(wallet_handle)[:count]
        return [
            (kmd_client.export_key(wallet_handle, "", address), address)
            for address in addresses
        ]
    finally:
        kmd_client.release_wallet_handle(wallet_handle)


def get_build_dir() -> Path:
    return Path(os.getenv("BUILD_DIR", "build"))


def deployment_path(network: str | None = None) -> Path:
    return Path(f"deployment_{network or get_network()}.json")


def save_deployment(info: dict, network: str | None = None) -> Path:
    """Write deployment info next to the scripts' working directory."""
    path = deployment_path(network)
    with open(path, "w") as f:
        json.dump(info, f, indent=2)
    return path


def load_deployment(network: str | None = None) -> dict:
    path = deployment_path(network)
    if not path.exists():
        raise ValueError(f"No deployment found at {path}. Run scripts.deploy first.")
    with open(path) as f:
        return json.load(f)


def get_app_id(network: str | None = None) -> int:
    """
    Resolve the CharityCampaignFactory application ID.

    CHARITY_APP_ID wins over the deployment file.
    """
    app_id = os.getenv("CHARITY_APP_ID")
    if app_id:
        return int(app_id)

    deployment = load_deployment(network)
    if "app_id" not in deployment:
        raise ValueError(f"Deployment file {deployment_path(network)} has no app_id")
    return int(deployment["app_id"])


def get_latest_timestamp(client: algod.AlgodClient) -> int:
    """Timestamp of the last block, the value contracts see as latest_timestamp."""
    last_round = client.status()["last-round"]
    return client.block_info(last_round)["block"]["ts"]
