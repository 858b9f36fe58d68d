"""Oracle account state - static test oracle and pull feed model"""
import hashlib
import struct
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional
from ..constants import (
    DISCRIMINATOR_SIZE,
    SLOT_DURATION_MS,
    STATIC_ORACLE_MIN_SIZE,
    SWITCHBOARD_MIN_ACCOUNT_SIZE,
    U128_MAX,
)
from ..errors import FeedError, InvalidOracle, OracleInvalidReturnData

PUBKEY_SIZE = 32


def account_discriminator(name: str) -> bytes:
    """Anchor account discriminator: first 8 bytes of sha256("account:<Name>")"""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


class OracleSource(Enum):
    SWITCHBOARD = "switchboard"
    STATIC = "static"


@dataclass
class OracleAccount:
    """Raw oracle account as handed to the program

    `source` is the explicit account type tag. Untagged accounts are
    classified by size.
    """
    key: str  # Using string instead of Pubkey
    data: bytes
    source: Optional[OracleSource] = None


@dataclass
class Clock:
    slot: int


class SlotClock:
    """Slot counter derived from wall-clock time"""

    @staticmethod
    def get() -> Clock:
        return Clock(slot=int(time.time() * 1000) // SLOT_DURATION_MS)


@dataclass
class StaticOracle:
    """Fixed price oracle (testing only)"""
    bump: int
    price: int  # scaled by ORACLE_SCALE
    admin: str

    SEED = b"static_oracle"
    DISCRIMINATOR = account_discriminator("StaticOracle")

    @staticmethod
    def space() -> int:
        return DISCRIMINATOR_SIZE + 1 + 16 + PUBKEY_SIZE

    def set_price(self, new_price: int, signer: str) -> None:
        if signer != self.admin:
            raise InvalidOracle("Only the oracle admin can update the price")
        self.price = new_price

    def to_bytes(self) -> bytes:
        admin = self.admin.encode()
        if len(admin) > PUBKEY_SIZE:
            raise ValueError("Admin key longer than 32 bytes")
        return (
            self.DISCRIMINATOR
            + struct.pack("<B", self.bump)
            + self.price.to_bytes(16, "little")
            + admin.ljust(PUBKEY_SIZE, b"\0")
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "StaticOracle":
        if len(data) < cls.space():
            raise OracleInvalidReturnData("Static oracle account too small")
        if data[:DISCRIMINATOR_SIZE] != cls.DISCRIMINATOR:
            raise OracleInvalidReturnData("Not a static oracle account")
        bump = data[DISCRIMINATOR_SIZE]
        price = int.from_bytes(data[DISCRIMINATOR_SIZE + 1:STATIC_ORACLE_MIN_SIZE], "little")
        admin = data[STATIC_ORACLE_MIN_SIZE:cls.space()].rstrip(b"\0").decode()
        return cls(bump=bump, price=price, admin=admin)


# discriminator, mantissa (i128), scale (u32), last update slot (u64), samples (u32)
_FEED_HEADER = struct.Struct("<8s16sIQI")


@dataclass
class PullFeedAccountData:
    """Model of an oracle provider's pull feed account

    The value is a decimal `mantissa * 10^-scale`.
    """
    mantissa: int
    scale: int
    last_update_slot: int
    num_samples: int

    DISCRIMINATOR = account_discriminator("PullFeedAccountData")

    @classmethod
    def parse(cls, data: bytes) -> "PullFeedAccountData":
        if len(data) < _FEED_HEADER.size:
            raise FeedError("Pull feed account too small")
        discriminator, mantissa, scale, last_update_slot, num_samples = _FEED_HEADER.unpack_from(data)
        if discriminator != cls.DISCRIMINATOR:
            raise FeedError("Not a pull feed account")
        return cls(
            mantissa=int.from_bytes(mantissa, "little", signed=True),
            scale=scale,
            last_update_slot=last_update_slot,
            num_samples=num_samples,
        )

    def to_bytes(self) -> bytes:
        header = _FEED_HEADER.pack(
            self.DISCRIMINATOR,
            self.mantissa.to_bytes(16, "little", signed=True),
            self.scale,
            self.last_update_slot,
            self.num_samples,
        )
        return header.ljust(SWITCHBOARD_MIN_ACCOUNT_SIZE, b"\0")

    def value(self) -> Decimal:
        # built from the digit tuple so no context rounding happens
        sign = 1 if self.mantissa < 0 else 0
        digits = tuple(int(d) for d in str(abs(self.mantissa)))
        return Decimal((sign, digits, -self.scale))

    def get_value(self, slot: int, max_staleness: int, min_samples: int, only_positive: bool) -> Decimal:
        """Latest value, checked for freshness and sample count"""
        if slot < self.last_update_slot:
            raise FeedError("Feed updated after the current slot")
        if slot - self.last_update_slot > max_staleness:
            raise FeedError(f"Feed is stale: last update {self.last_update_slot}, slot {slot}")
        if self.num_samples < min_samples:
            raise FeedError(f"Not enough samples: {self.num_samples} < {min_samples}")
        value = self.value()
        if only_positive and value <= 0:
            raise FeedError("Feed value is not positive")
        return value


def static_oracle_account(key: str, price: int, admin: str = "admin", bump: int = 255) -> OracleAccount:
    """Convenience builder for a static oracle account"""
    if not 0 <= price <= U128_MAX:
        raise ValueError("Static oracle price must fit in u128")
    return OracleAccount(key=key, data=StaticOracle(bump, price, admin).to_bytes())
