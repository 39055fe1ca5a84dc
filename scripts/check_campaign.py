"""
Check Campaign Status

Prints progress, expiry and finalization state of one campaign against
the current block time.
Run with: python -m scripts.check_campaign <external-id>
"""

import argparse
import sys
from datetime import datetime

from scripts import campaign_reader
from scripts.network import get_algod_client, get_app_id, get_latest_timestamp


MICROALGOS_PER_ALGO = 1_000_000


def yes_no(value: bool, yes: str = "YES", no: str = "NO") -> str:
    return yes if value else no


def main():
    parser = argparse.ArgumentParser(description="Show the status of a charity campaign")
    parser.add_argument("external_id", help="Off-chain identifier the campaign was created with")
    args = parser.parse_args()

    client = get_algod_client()
    app_id = get_app_id()

    try:
        campaign = campaign_reader.read_campaign(client, app_id, args.external_id)
    except campaign_reader.CampaignNotFoundError as e:
        print(f"❌ {e}")
        sys.exit(1)

    now = get_latest_timestamp(client)
    expired = campaign.is_expired(now)

    print("\n" + "=" * 60)
    print(f"📋 Campaign {campaign.external_id}: {campaign.title}")
    print("=" * 60)
    print(f"💰 Goal: {campaign.goal_amount / MICROALGOS_PER_ALGO} ALGO")
    print(f"📊 Raised: {campaign.total_raised / MICROALGOS_PER_ALGO} ALGO ({campaign.progress_percent}%)")
    print(f"👥 Donors: {campaign.donor_count}")
    print(f"⏰ Deadline: {datetime.fromtimestamp(campaign.deadline)}")
    print(f"🕐 Current Time: {datetime.fromtimestamp(now)}")
    print(f"⏳ Expired: {yes_no(expired, 'YES ⚠️', 'NO ✅')}")
    print(f"🎯 Goal Reached: {yes_no(campaign.goal_reached, 'YES 🎉', 'NO ❌')}")
    print(f"✔️ Finalized: {yes_no(campaign.finalized)}")
    print(f"💸 Refunds Enabled: {yes_no(campaign.refund_enabled)}")
    if campaign.total_refunded:
        print(f"↩️ Refunded: {campaign.total_refunded / MICROALGOS_PER_ALGO} ALGO")

    if campaign.can_finalize(now):
        print("\n💡 This campaign can be finalized now.")

    if campaign.finalized and campaign.refund_enabled:
        print("\n💸 Donors can now claim refunds!")

    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()
