"""
Create Sample Campaigns with Donations

Creates three sample charity campaigns from the deployer account, then
donates to the first one from LocalNet's default wallet accounts and
prints its leaderboard.
Run with: python -m scripts.seed_campaigns
"""

import sys
import uuid

from algosdk import abi, logic, transaction
from algosdk.atomic_transaction_composer import (
    AccountTransactionSigner,
    AtomicTransactionComposer,
    TransactionWithSigner,
)
from algosdk.v2client import algod

from scripts import campaign_reader
from scripts.network import (
    get_algod_client,
    get_app_id,
    get_deployer_account,
    get_kmd_client,
    get_localnet_accounts,
    get_network,
)


MICROALGOS_PER_ALGO = 1_000_000

CREATE_CAMPAIGN = abi.Method.from_signature(
    "create_campaign(address,string,string,uint64,uint64,string,pay)byte[]"
)
DONATE = abi.Method.from_signature("donate(string,pay)void")

SAMPLE_CAMPAIGNS = [
    {
        "title": "Clean Water for Rural Communities",
        "description": (
            "Help us bring clean drinking water to 1,000 families in rural areas. "
            "Funds will be used to build wells and water purification systems."
        ),
        "goal_algo": 10,
        "duration_days": 30,
    },
    {
        "title": "School Supplies for Underprivileged Children",
        "description": (
            "Provide books, uniforms, and learning materials to 500 children "
            "from low-income families."
        ),
        "goal_algo": 5,
        "duration_days": 45,
    },
    {
        "title": "Emergency Medical Fund",
        "description": (
            "Support free medical camps and emergency treatments for those who "
            "cannot afford healthcare."
        ),
        "goal_algo": 15,
        "duration_days": 60,
    },
]

SAMPLE_DONATIONS_ALGO = [2.5, 1.8, 3.2, 0.5, 1.1, 0.9]


def create_campaign(
    client: algod.AlgodClient,
    app_id: int,
    private_key: str,
    creator: str,
    beneficiary: str,
    campaign: dict,
    external_id: str,
) -> bytes:
    """
    Create one campaign through the factory, paying its storage deposit.

    Returns:
        Campaign key returned by the contract
    """
    key = campaign_reader.campaign_key(external_id)
    raw_count = campaign_reader.read_box(client, app_id, campaign_reader.creator_count_box_name(creator))
    index = 0 if raw_count is None else campaign_reader.decode_uint64(raw_count)

    sp = client.suggested_params()
    signer = AccountTransactionSigner(private_key)
    deposit = transaction.PaymentTxn(
        sender=creator,
        sp=sp,
        receiver=logic.get_application_address(app_id),
        amt=campaign_reader.campaign_deposit(client, app_id, creator),
    )

    atc = AtomicTransactionComposer()
    atc.add_method_call(
        app_id=app_id,
        method=CREATE_CAMPAIGN,
        sender=creator,
        sp=sp,
        signer=signer,
        method_args=[
            beneficiary,
            campaign["title"],
            campaign["description"],
            int(campaign["goal_algo"] * MICROALGOS_PER_ALGO),
            campaign["duration_days"],
            external_id,
            TransactionWithSigner(deposit, signer),
        ],
        boxes=[
            (app_id, campaign_reader.campaign_box_name(key)),
            (app_id, campaign_reader.leaderboard_box_name(key)),
            (app_id, campaign_reader.creator_count_box_name(creator)),
            (app_id, campaign_reader.creator_index_box_name(creator, index)),
        ],
    )
    result = atc.execute(client, 4)
    return bytes(result.abi_results[0].return_value)


def donate(
    client: algod.AlgodClient,
    app_id: int,
    private_key: str,
    donor: str,
    external_id: str,
    amount: int,
) -> str:
    """
    Donate to a campaign with a grouped payment to the application account.
    A donor's first payment also carries the contribution box deposit.
    """
    key = campaign_reader.campaign_key(external_id)
    sp = client.suggested_params()
    signer = AccountTransactionSigner(private_key)

    payment = transaction.PaymentTxn(
        sender=donor,
        sp=sp,
        receiver=logic.get_application_address(app_id),
        amt=amount + campaign_reader.donation_deposit(client, app_id, external_id, donor),
    )

    atc = AtomicTransactionComposer()
    atc.add_method_call(
        app_id=app_id,
        method=DONATE,
        sender=donor,
        sp=sp,
        signer=signer,
        method_args=[external_id, TransactionWithSigner(payment, signer)],
        boxes=[
            (app_id, campaign_reader.campaign_box_name(key)),
            (app_id, campaign_reader.contribution_box_name(key, donor)),
            (app_id, campaign_reader.leaderboard_box_name(key)),
        ],
    )
    result = atc.execute(client, 4)
    return result.tx_ids[-1]


def print_leaderboard(client: algod.AlgodClient, app_id: int, external_id: str):
    print("\n🏆 LEADERBOARD:")
    medals = {1: "🥇", 2: "🥈", 3: "🥉"}
    for rank, (donor, amount) in enumerate(campaign_reader.read_top_donors(client, app_id, external_id), start=1):
        print(f"   {medals.get(rank, f'#{rank}')} {donor[:10]}...{donor[-4:]} - {amount / MICROALGOS_PER_ALGO} ALGO")

    campaign = campaign_reader.read_campaign(client, app_id, external_id)
    print(f"\n   Total Raised: {campaign.total_raised / MICROALGOS_PER_ALGO} ALGO")


def main():
    print("\n" + "=" * 60)
    print("🌱 CHARITY CAMPAIGNS - SAMPLE DATA")
    print("=" * 60)

    network = get_network()
    if network != "localnet":
        print(f"❌ Sample data is only seeded on localnet (NETWORK={network})")
        sys.exit(1)

    client = get_algod_client()
    app_id = get_app_id(network)
    private_key, creator = get_deployer_account()

    print(f"\n📍 App ID: {app_id}")
    print(f"📍 Creator: {creator}")

    external_ids = []
    for number, campaign in enumerate(SAMPLE_CAMPAIGNS, start=1):
        print(f"\n{number}️⃣ {campaign['title']}")
        external_id = str(uuid.uuid4())
        try:
            key = create_campaign(client, app_id, private_key, creator, creator, campaign, external_id)
            external_ids.append(external_id)
            print(f"   ✅ Created! External ID: {external_id}")
            print(f"   Key: {key.hex()}")
        except Exception as e:
            print(f"   ❌ Failed: {e}")

    if not external_ids:
        sys.exit(1)

    print("\n" + "-" * 60)
    print("💸 DONATIONS")
    print("-" * 60)

    target = external_ids[0]
    donors = get_localnet_accounts(get_kmd_client(), len(SAMPLE_DONATIONS_ALGO))
    for (donor_key, donor), amount_algo in zip(donors, SAMPLE_DONATIONS_ALGO):
        try:
            donate(client, app_id, donor_key, donor, target, int(amount_algo * MICROALGOS_PER_ALGO))
            print(f"   ✅ {donor[:8]}... donated {amount_algo} ALGO")
        except Exception as e:
            print(f"   ❌ {donor[:8]}... failed: {e}")

    print_leaderboard(client, app_id, target)


if __name__ == "__main__":
    main()
