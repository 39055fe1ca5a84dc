"""
Deployment Script for the Charity Campaign Factory

Deploys the compiled CharityCampaignFactory and funds its application
account with its base minimum balance. Box storage is paid for by the
creators and donors whose calls create the boxes.
Run with: python -m scripts.deploy

Build the contract first:
    algokit compile py contracts/charity_campaigns/contract.py --out-dir build

Environment variables:
- ALGOD_SERVER: Algorand node URL
- ALGOD_TOKEN: Algorand node token
- DEPLOYER_MNEMONIC: 25-word mnemonic for deployer account
- NETWORK: localnet | testnet | mainnet
- APP_FUNDING_ALGO: ALGO sent to the application account (default 1)
- BUILD_DIR: Directory holding the compiled TEAL (default build)
"""

import base64
import os
import sys
from pathlib import Path

from algosdk import abi, logic, transaction
from algosdk.v2client import algod

from scripts.network import (
    get_algod_client,
    get_build_dir,
    get_deployer_account,
    get_network,
    save_deployment,
)


CONTRACT_NAME = "CharityCampaignFactory"

# owner (bytes), owner_can_finalize and campaign_count (ints)
GLOBAL_INTS = 2
GLOBAL_BYTES = 1

PAGE_SIZE = 2048
MICROALGOS_PER_ALGO = 1_000_000


def compile_teal(client: algod.AlgodClient, source: str) -> bytes:
    """Compile TEAL source code using the Algorand node."""
    response = client.compile(source)
    return base64.b64decode(response["result"])


def load_programs(client: algod.AlgodClient, build_dir: Path) -> tuple[bytes, bytes]:
    """
    Compile the approval and clear programs from the build output.

    Returns:
        Tuple of (approval_program, clear_program)
    """
    approval_file = build_dir / f"{CONTRACT_NAME}.approval.teal"
    clear_file = build_dir / f"{CONTRACT_NAME}.clear.teal"

    for path in (approval_file, clear_file):
        if not path.exists():
            raise ValueError(f"{path} not found. Compile the contract first.")

    approval_program = compile_teal(client, approval_file.read_text())
    clear_program = compile_teal(client, clear_file.read_text())
    return approval_program, clear_program


def extra_pages_for(approval_program: bytes, clear_program: bytes) -> int:
    """Additional program pages needed beyond the first 2048 bytes."""
    total = len(approval_program) + len(clear_program)
    return max(0, (total - 1) // PAGE_SIZE)


def deploy_contract(
    client: algod.AlgodClient,
    private_key: str,
    sender: str,
    approval_program: bytes,
    clear_program: bytes,
) -> tuple[int, str]:
    """
    Create the application through its create() ABI method.

    Returns:
        Tuple of (app_id, tx_id)
    """
    params = client.suggested_params()
    create_selector = abi.Method.from_signature("create()void").get_selector()

    txn = transaction.ApplicationCreateTxn(
        sender=sender,
        sp=params,
        on_complete=transaction.OnComplete.NoOpOC,
        approval_program=approval_program,
        clear_program=clear_program,
        global_schema=transaction.StateSchema(GLOBAL_INTS, GLOBAL_BYTES),
        local_schema=transaction.StateSchema(0, 0),
        app_args=[create_selector],
        extra_pages=extra_pages_for(approval_program, clear_program),
    )

    signed_txn = txn.sign(private_key)
    tx_id = client.send_transaction(signed_txn)

    result = transaction.wait_for_confirmation(client, tx_id, 4)
    return result["application-index"], tx_id


def fund_application(client: algod.AlgodClient, private_key: str, sender: str, app_id: int, amount: int) -> str:
    """Send the application account its base minimum balance."""
    params = client.suggested_params()
    txn = transaction.PaymentTxn(
        sender=sender,
        sp=params,
        receiver=logic.get_application_address(app_id),
        amt=amount,
    )
    tx_id = client.send_transaction(txn.sign(private_key))
    transaction.wait_for_confirmation(client, tx_id, 4)
    return tx_id


def main():
    """Main deployment function."""
    print("\n" + "=" * 60)
    print("💚 CHARITY CAMPAIGNS - CONTRACT DEPLOYMENT")
    print("=" * 60)

    network = get_network()
    client = get_algod_client()
    private_key, deployer = get_deployer_account()

    print(f"\n📍 Network: {network}")
    print(f"📍 Deployer: {deployer}")

    info = client.account_info(deployer)
    balance = info["amount"] / MICROALGOS_PER_ALGO
    print(f"💰 Balance: {balance:.6f} ALGO")

    funding_algo = float(os.getenv("APP_FUNDING_ALGO", "1"))
    if balance < funding_algo + 1:
        print(f"❌ Insufficient balance! Need at least {funding_algo + 1} ALGO")
        if network == "localnet":
            print("Run: algokit goal clerk send -a 10000000 -f <dispenser> -t " + deployer)
        sys.exit(1)

    print("\n" + "-" * 60)
    print(f"📄 {CONTRACT_NAME}")
    print("-" * 60)

    try:
        approval_program, clear_program = load_programs(client, get_build_dir())
        print(f"   Approval: {len(approval_program)} bytes, clear: {len(clear_program)} bytes")

        app_id, tx_id = deploy_contract(client, private_key, deployer, approval_program, clear_program)
        print(f"   Transaction ID: {tx_id}")
        print(f"   ✅ Deployed! App ID: {app_id}")

        app_address = logic.get_application_address(app_id)
        print(f"\n⏳ Funding application account {app_address}...")
        fund_tx_id = fund_application(
            client, private_key, deployer, app_id, int(funding_algo * MICROALGOS_PER_ALGO)
        )
        print(f"   ✅ Funded with {funding_algo} ALGO")
    except Exception as e:
        print(f"   ❌ Failed: {e}")
        sys.exit(1)

    deployment_info = {
        "network": network,
        "deployer": deployer,
        "contract": CONTRACT_NAME,
        "app_id": app_id,
        "app_address": app_address,
        "tx_id": tx_id,
        "funding_tx_id": fund_tx_id,
    }
    output_path = save_deployment(deployment_info, network)

    print("\n" + "=" * 60)
    print("📋 DEPLOYMENT SUMMARY")
    print("=" * 60)
    print(f"\n   App ID: {app_id}")
    print(f"   App Address: {app_address}")
    if network == "testnet":
        print(f"   Explorer: https://testnet.explorer.perawallet.app/application/{app_id}")
    print(f"\nDeployment info saved to: {output_path}")


if __name__ == "__main__":
    main()
