"""
Off-chain reader for CharityCampaignFactory state.

Derives campaign keys exactly as the contract does and decodes its box
storage, so the metadata backend can link rows to on-chain campaigns and
refresh its cache without sending transactions.

Box layout (prefix + key):
- c{key}: Campaign ARC-4 struct
- d{sha256(key + donor)}: uint64 contribution
- l{key}: 10 packed (address, uint64) leaderboard records
- n{creator}: uint64 number of campaigns created
- i{creator}{index}: campaign key
"""

import base64
import hashlib
from dataclasses import dataclass

from algosdk import abi, encoding
from algosdk.error import AlgodHTTPError
from algosdk.v2client import algod


CAMPAIGN_PREFIX = b"c"
CONTRIBUTION_PREFIX = b"d"
LEADERBOARD_PREFIX = b"l"
CREATOR_COUNT_PREFIX = b"n"
CREATOR_INDEX_PREFIX = b"i"

KEY_SIZE = 32
LEADERBOARD_ENTRY_SIZE = 40

# Storage deposits charged by the contract, in microALGO
CAMPAIGN_BOX_DEPOSIT = 398_500
LEADERBOARD_BOX_DEPOSIT = 175_700
CREATOR_COUNT_BOX_DEPOSIT = 18_900
CREATOR_INDEX_BOX_DEPOSIT = 31_700
CONTRIBUTION_BOX_DEPOSIT = 18_900

CAMPAIGN_TYPE = abi.ABIType.from_string(
    "(address,address,uint64,uint64,uint64,uint64,uint64,uint64,bool,bool,string,string,string)"
)


class CampaignNotFoundError(LookupError):
    """Raised when a campaign has no box on-chain."""


@dataclass
class CampaignState:
    key: bytes
    creator: str
    beneficiary: str
    goal_amount: int
    deadline: int
    total_raised: int
    total_refunded: int
    donor_count: int
    created_at: int
    finalized: bool
    refund_enabled: bool
    title: str
    description: str
    external_id: str

    @property
    def status(self) -> str:
        if not self.finalized:
            return "active"
        return "failed" if self.refund_enabled else "successful"

    @property
    def goal_reached(self) -> bool:
        return self.total_raised >= self.goal_amount

    @property
    def progress_percent(self) -> int:
        return self.total_raised * 100 // self.goal_amount

    def is_expired(self, now: int) -> bool:
        """Donations close once now is past the deadline."""
        return now > self.deadline

    def can_finalize(self, now: int) -> bool:
        return not self.finalized and (self.is_expired(now) or self.goal_reached)


def campaign_key(external_id: str) -> bytes:
    """Derive the campaign key: sha256 of the UTF-8 external identifier."""
    return hashlib.sha256(external_id.encode("utf-8")).digest()


def campaign_box_name(key: bytes) -> bytes:
    return CAMPAIGN_PREFIX + key


def contribution_box_name(key: bytes, donor: str) -> bytes:
    return CONTRIBUTION_PREFIX + hashlib.sha256(key + encoding.decode_address(donor)).digest()


def leaderboard_box_name(key: bytes) -> bytes:
    return LEADERBOARD_PREFIX + key


def creator_count_box_name(creator: str) -> bytes:
    return CREATOR_COUNT_PREFIX + encoding.decode_address(creator)


def creator_index_box_name(creator: str, index: int) -> bytes:
    return CREATOR_INDEX_PREFIX + encoding.decode_address(creator) + index.to_bytes(8, "big")


def decode_campaign(key: bytes, raw: bytes) -> CampaignState:
    """
    Decode a campaign box value.

    Args:
        key: Campaign key the box belongs to
        raw: ARC-4 encoded Campaign struct

    Returns:
        Decoded campaign
    """
    (
        creator,
        beneficiary,
        goal_amount,
        deadline,
        total_raised,
        total_refunded,
        donor_count,
        created_at,
        finalized,
        refund_enabled,
        title,
        description,
        external_id,
    ) = CAMPAIGN_TYPE.decode(raw)
    return CampaignState(
        key=key,
        creator=creator,
        beneficiary=beneficiary,
        goal_amount=goal_amount,
        deadline=deadline,
        total_raised=total_raised,
        total_refunded=total_refunded,
        donor_count=donor_count,
        created_at=created_at,
        finalized=finalized,
        refund_enabled=refund_enabled,
        title=title,
        description=description,
        external_id=external_id,
    )


def decode_uint64(raw: bytes) -> int:
    if len(raw) != 8:
        raise ValueError(f"Expected 8 bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def decode_leaderboard(raw: bytes) -> list[tuple[str, int]]:
    """
    Decode a packed leaderboard box into (address, amount) pairs.
    Empty slots (amount 0) end the list.
    """
    if len(raw) % LEADERBOARD_ENTRY_SIZE:
        raise ValueError(f"Leaderboard size {len(raw)} is not a multiple of {LEADERBOARD_ENTRY_SIZE}")

    entries = []
    for offset in range(0, len(raw), LEADERBOARD_ENTRY_SIZE):
        record = raw[offset:offset + LEADERBOARD_ENTRY_SIZE]
        amount = int.from_bytes(record[KEY_SIZE:], "big")
        if amount == 0:
            break
        entries.append((encoding.encode_address(record[:KEY_SIZE]), amount))
    return entries


def read_box(client: algod.AlgodClient, app_id: int, name: bytes) -> bytes | None:
    """Read a box value, or None if the box does not exist."""
    try:
        response = client.application_box_by_name(app_id, name)
    except AlgodHTTPError as e:
        if e.code == 404:
            return None
        raise
    return base64.b64decode(response["value"])


def read_campaign_by_key(client: algod.AlgodClient, app_id: int, key: bytes) -> CampaignState:
    raw = read_box(client, app_id, campaign_box_name(key))
    if raw is None:
        raise CampaignNotFoundError(f"No campaign with key {key.hex()}")
    return decode_campaign(key, raw)


def read_campaign(client: algod.AlgodClient, app_id: int, external_id: str) -> CampaignState:
    """Read a campaign by the off-chain identifier it was created with."""
    try:
        return read_campaign_by_key(client, app_id, campaign_key(external_id))
    except CampaignNotFoundError:
        raise CampaignNotFoundError(f"No campaign for external id {external_id!r}") from None


def read_contribution(client: algod.AlgodClient, app_id: int, external_id: str, donor: str) -> int:
    raw = read_box(client, app_id, contribution_box_name(campaign_key(external_id), donor))
    return 0 if raw is None else decode_uint64(raw)


def read_top_donors(client: algod.AlgodClient, app_id: int, external_id: str, count: int = 10) -> list[tuple[str, int]]:
    raw = read_box(client, app_id, leaderboard_box_name(campaign_key(external_id)))
    if raw is None:
        raise CampaignNotFoundError(f"No campaign for external id {external_id!r}")
    return decode_leaderboard(raw)[:count]


def read_creator_campaigns(client: algod.AlgodClient, app_id: int, creator: str) -> list[bytes]:
    """Keys of the campaigns created by an account, in creation order."""
    raw = read_box(client, app_id, creator_count_box_name(creator))
    if raw is None:
        return []

    keys = []
    for index in range(decode_uint64(raw)):
        key = read_box(client, app_id, creator_index_box_name(creator, index))
        if key is None:
            raise CampaignNotFoundError(f"Creator index {index} missing for {creator}")
        keys.append(key)
    return keys


def list_campaigns(client: algod.AlgodClient, app_id: int) -> list[CampaignState]:
    """Read every campaign of the application, oldest first."""
    response = client.application_boxes(app_id)

    campaigns = []
    for box in response.get("boxes", []):
        name = base64.b64decode(box["name"])
        if name[:1] != CAMPAIGN_PREFIX or len(name) != len(CAMPAIGN_PREFIX) + KEY_SIZE:
            continue
        campaigns.append(read_campaign_by_key(client, app_id, name[1:]))

    campaigns.sort(key=lambda c: (c.created_at, c.external_id))
    return campaigns


def read_factory_state(client: algod.AlgodClient, app_id: int) -> dict:
    """
    Read the factory's global state.

    Returns:
        Dict with owner (address), owner_can_finalize and campaign_count
    """
    app_info = client.application_info(app_id)

    state = {}
    for item in app_info.get("params", {}).get("global-state", []):
        key = base64.b64decode(item["key"]).decode("utf-8")
        value = item["value"]
        if value["type"] == 1:  # bytes
            state[key] = base64.b64decode(value["bytes"])
        else:  # uint
            state[key] = value["uint"]

    return {
        "owner": encoding.encode_address(state["owner"]) if "owner" in state else None,
        "owner_can_finalize": bool(state.get("owner_can_finalize", 0)),
        "campaign_count": state.get("campaign_count", 0),
    }


def campaign_deposit(client: algod.AlgodClient, app_id: int, creator: str) -> int:
    """Storage deposit to send with create_campaign from this creator."""
    deposit = CAMPAIGN_BOX_DEPOSIT + LEADERBOARD_BOX_DEPOSIT + CREATOR_INDEX_BOX_DEPOSIT
    if read_box(client, app_id, creator_count_box_name(creator)) is None:
        deposit += CREATOR_COUNT_BOX_DEPOSIT
    return deposit


def donation_deposit(client: algod.AlgodClient, app_id: int, external_id: str, donor: str) -> int:
    """Storage deposit to add on top of the donor's next donation (0 after the first)."""
    if read_box(client, app_id, contribution_box_name(campaign_key(external_id), donor)) is None:
        return CONTRIBUTION_BOX_DEPOSIT
    return 0
