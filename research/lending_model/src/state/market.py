"""Market state management"""
from dataclasses import dataclass
from ..constants import WAD, VIRTUAL_ASSETS, VIRTUAL_SHARES
from ..fixed_point import mul_div_down

@dataclass
class Market:
    """Pool-wide accounting for one collateral/loan pair"""
    oracle: str  # Using string instead of Pubkey
    lltv: int  # bps, 0 <= lltv < BPS
    total_supply_assets: int = 0
    total_supply_shares: int = 0
    total_borrow_assets: int = 0
    total_borrow_shares: int = 0

    def supply_share_price(self) -> int:
        """Assets redeemable per supply share, scaled by WAD"""
        return mul_div_down(
            WAD,
            self.total_supply_assets + VIRTUAL_ASSETS,
            self.total_supply_shares + VIRTUAL_SHARES,
        )
