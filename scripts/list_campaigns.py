"""
List Campaigns

Prints every campaign stored by the CharityCampaignFactory.
Run with: python -m scripts.list_campaigns
"""

from datetime import datetime

from scripts import campaign_reader
from scripts.network import get_algod_client, get_app_id


MICROALGOS_PER_ALGO = 1_000_000


def main():
    client = get_algod_client()
    app_id = get_app_id()

    factory = campaign_reader.read_factory_state(client, app_id)
    campaigns = campaign_reader.list_campaigns(client, app_id)

    print(f"\nTotal campaigns: {factory['campaign_count']}")
    print(f"Owner: {factory['owner']} (can finalize: {factory['owner_can_finalize']})\n")

    for campaign in campaigns:
        print(f"Campaign {campaign.external_id}:")
        print(f"  Key: {campaign.key.hex()}")
        print(f"  Title: {campaign.title}")
        print(f"  Description: {campaign.description}")
        print(f"  Goal: {campaign.goal_amount / MICROALGOS_PER_ALGO} ALGO")
        print(f"  Raised: {campaign.total_raised / MICROALGOS_PER_ALGO} ALGO")
        print(f"  Donors: {campaign.donor_count}")
        print(f"  Beneficiary: {campaign.beneficiary}")
        print(f"  Creator: {campaign.creator}")
        print(f"  Deadline: {datetime.fromtimestamp(campaign.deadline)}")
        print(f"  Status: {campaign.status}")
        print("---\n")


if __name__ == "__main__":
    main()
