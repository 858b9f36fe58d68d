"""Position state management"""
from dataclasses import dataclass
from ..fixed_point import to_assets_up
from .market import Market

@dataclass
class Position:
    """A borrower's position in one market"""
    user: str  # Using string instead of Pubkey
    collateral: int = 0  # collateral token units
    borrow_shares: int = 0

    def borrowed_assets(self, market: Market) -> int:
        """Current debt in loan tokens, rounded up"""
        return to_assets_up(
            self.borrow_shares,
            market.total_borrow_assets,
            market.total_borrow_shares,
        )

    def has_bad_debt(self) -> bool:
        """Debt left over with nothing to seize"""
        return self.collateral == 0 and self.borrow_shares > 0
