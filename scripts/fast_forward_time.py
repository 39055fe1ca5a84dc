"""
Fast-forward LocalNet Time

Moves LocalNet's block timestamps forward so campaign deadlines can be
reached without waiting. Requires LocalNet in dev mode.
Run with: python -m scripts.fast_forward_time [days]
"""

import argparse
import sys
from datetime import datetime

from algosdk import transaction

from scripts.network import (
    get_algod_client,
    get_kmd_client,
    get_latest_timestamp,
    get_localnet_accounts,
    get_network,
)


SECONDS_PER_DAY = 86_400


def main():
    parser = argparse.ArgumentParser(description="Fast-forward LocalNet block time")
    parser.add_argument("days", type=int, nargs="?", default=31, help="Days to add (default 31)")
    args = parser.parse_args()

    if get_network() != "localnet":
        print("❌ Time can only be fast-forwarded on localnet")
        sys.exit(1)

    client = get_algod_client()
    seconds = args.days * SECONDS_PER_DAY
    print(f"⏰ Fast-forwarding time by {args.days} days ({seconds} seconds)...")

    current_offset = client.get_timestamp_offset()["offset"]
    client.set_timestamp_offset(current_offset + seconds)

    # A new block is needed before the offset shows up in latest_timestamp
    private_key, address = get_localnet_accounts(get_kmd_client(), 1)[0]
    txn = transaction.PaymentTxn(sender=address, sp=client.suggested_params(), receiver=address, amt=0)
    tx_id = client.send_transaction(txn.sign(private_key))
    transaction.wait_for_confirmation(client, tx_id, 4)

    now = get_latest_timestamp(client)
    print("✅ Time fast-forwarded successfully!")
    print(f"📅 Current blockchain time: {datetime.fromtimestamp(now)}")
    print(f"🔢 Current round: {client.status()['last-round']}")


if __name__ == "__main__":
    main()
