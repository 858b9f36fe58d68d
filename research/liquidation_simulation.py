import numpy as np
import matplotlib.pyplot as plt
import pandas as pd
from dataclasses import dataclass, field
from typing import List, Optional
from pathlib import Path
from datetime import datetime

from lending_model.src.constants import ORACLE_SCALE, WAD
from lending_model.src.errors import InvalidPositionError
from lending_model.src.instructions.liquidate import liquidate
from lending_model.src.liquidation_math import health_factor, is_liquidatable
from lending_model.src.logging import get_logger
from lending_model.src.state.market import Market
from lending_model.src.state.oracle_accounts import OracleAccount, StaticOracle
from lending_model.src.state.position import Position

logger = get_logger("research.liquidation_simulation")

COLLATERAL_UNIT = 10**6  # 6 decimals for both tokens
ORACLE_KEY = "static-oracle"

@dataclass
class PositionParams:
    n_positions: int = 50
    collateral_per_position: float = 1_000.0  # collateral tokens
    min_ltv: float = 0.40
    max_ltv: float = 0.79

@dataclass
class SimulationParams:
    initial_price: float = 1.0  # loan tokens per collateral token
    price_volatility: float = 0.01
    simulation_days: int = 100
    steps_per_day: int = 24  # hourly steps
    lltv: int = 8000  # 80% in bps
    close_factor: float = 0.5  # share of debt repaid per liquidation
    supply_buffer: float = 1.25  # supply assets relative to initial borrows
    random_seed: Optional[int] = None
    experiment_name: str = "default"
    position_params: PositionParams = field(default_factory=PositionParams)

class LiquidationSimulation:
    def __init__(self, params: SimulationParams):
        self.params = params
        self.oracle = StaticOracle(bump=255, price=self._scaled_price(params.initial_price), admin="sim")
        self.positions: List[Position] = []
        self.history: List[dict] = []
        self.total_bad_debt = 0

        if params.random_seed is not None:
            np.random.seed(params.random_seed)

        self.market = self._open_market()

    @staticmethod
    def _scaled_price(price: float) -> int:
        # 1e18 keeps float precision, the remaining 1e18 is exact
        return max(int(price * WAD), 1) * (ORACLE_SCALE // WAD)

    def _open_market(self) -> Market:
        pp = self.params.position_params
        market = Market(oracle=ORACLE_KEY, lltv=self.params.lltv)
        ltvs = np.random.uniform(pp.min_ltv, pp.max_ltv, pp.n_positions)
        collateral = int(pp.collateral_per_position * COLLATERAL_UNIT)

        for i, ltv in enumerate(ltvs):
            debt = int(collateral * self.params.initial_price * ltv)
            # shares start 1:1 with assets
            self.positions.append(Position(user=f"borrower-{i}", collateral=collateral, borrow_shares=debt))
            market.total_borrow_assets += debt
            market.total_borrow_shares += debt

        market.total_supply_assets = int(market.total_borrow_assets * self.params.supply_buffer)
        market.total_supply_shares = market.total_supply_assets
        return market

    def oracle_account(self) -> OracleAccount:
        return OracleAccount(key=ORACLE_KEY, data=self.oracle.to_bytes())

    def min_health(self, price: int) -> float:
        healths = [
            health_factor(p.collateral, p.borrowed_assets(self.market), price, self.market.lltv)
            for p in self.positions if p.borrow_shares > 0
        ]
        return min(healths) / WAD if healths else float("inf")

    def liquidate_unhealthy(self, price: int) -> int:
        liquidations = 0
        for position in self.positions:
            if not is_liquidatable(
                position.collateral,
                position.borrow_shares,
                self.market.total_borrow_assets,
                self.market.total_borrow_shares,
                price,
                self.market.lltv,
            ):
                continue

            if position.has_bad_debt():
                result = liquidate(self.market, position, self.oracle_account())
                self.total_bad_debt += result.bad_debt_assets
                liquidations += 1
                continue

            repaid_shares = max(int(position.borrow_shares * self.params.close_factor), 1)
            try:
                result = liquidate(self.market, position, self.oracle_account(), repaid_shares=repaid_shares)
            except InvalidPositionError:
                # not enough collateral for the close factor, take all of it
                try:
                    result = liquidate(self.market, position, self.oracle_account(), seized_assets=position.collateral)
                except InvalidPositionError as e:
                    logger.debug("Skipping %s: %s", position.user, e)
                    continue
            self.total_bad_debt += result.bad_debt_assets
            liquidations += 1
        return liquidations

    def simulate(self) -> pd.DataFrame:
        current_price = self.params.initial_price
        total_steps = self.params.simulation_days * self.params.steps_per_day

        for step in range(total_steps):
            # Simulate price movement with Brownian motion
            price_change = np.random.normal(0, self.params.price_volatility)
            current_price *= (1 + price_change)

            scaled_price = self._scaled_price(current_price)
            self.oracle.set_price(scaled_price, signer="sim")
            liquidations = self.liquidate_unhealthy(scaled_price)

            self.history.append({
                "time": step / self.params.steps_per_day,
                "price": current_price,
                "min_health": self.min_health(scaled_price),
                "liquidations": liquidations,
                "bad_debt": self.total_bad_debt / COLLATERAL_UNIT,
                "supply_share_price": self.market.supply_share_price() / WAD,
                "total_borrow": self.market.total_borrow_assets / COLLATERAL_UNIT,
            })

        return pd.DataFrame(self.history)

    def plot_results(self, df: pd.DataFrame) -> Path:
        output_dir = Path('research/results') / self.params.experiment_name
        output_dir.mkdir(parents=True, exist_ok=True)

        fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 10), sharex=True)

        ax1.plot(df["time"], df["price"], label='Collateral Price')
        ax1.set_ylabel('Price (loan tokens)')
        ax1.set_title('Collateral Price Over Time')
        ax1.legend()
        ax1.grid(True)

        ax2.plot(df["time"], df["min_health"].clip(upper=3.0), label='Lowest Health Factor', color='orange')
        ax2.axhline(y=1.0, color='r', linestyle='--', alpha=0.3)
        ax2.set_ylabel('Health Factor')
        ax2.legend()
        ax2.grid(True)

        ax3.plot(df["time"], df["supply_share_price"], label='Supply Share Price')
        ax3b = ax3.twinx()
        ax3b.plot(df["time"], df["bad_debt"], label='Socialized Bad Debt', color='purple', alpha=0.6)
        ax3.set_ylabel('Assets per Share')
        ax3b.set_ylabel('Bad Debt (loan tokens)')
        ax3.set_xlabel('Time (days)')
        ax3.legend(loc='upper left')
        ax3b.legend(loc='upper right')
        ax3.grid(True)

        plt.tight_layout()

        plot_name = f"vol_{self.params.price_volatility}_lltv_{self.params.lltv}"
        if self.params.random_seed is not None:
            plot_name += f"_seed_{self.params.random_seed}"

        plot_path = output_dir / f"{plot_name}.png"
        plt.savefig(plot_path)
        plt.close()
        df.to_csv(output_dir / f"{plot_name}.csv", index=False)
        return plot_path

def compare_lltvs(lltvs: List[int], base_params: SimulationParams) -> pd.DataFrame:
    """Run the same price path against markets with different LLTVs"""
    summary = []
    for lltv in lltvs:
        params = SimulationParams(
            initial_price=base_params.initial_price,
            price_volatility=base_params.price_volatility,
            simulation_days=base_params.simulation_days,
            steps_per_day=base_params.steps_per_day,
            lltv=lltv,
            close_factor=base_params.close_factor,
            supply_buffer=base_params.supply_buffer,
            random_seed=base_params.random_seed,
            experiment_name=base_params.experiment_name,
            position_params=base_params.position_params,
        )
        df = LiquidationSimulation(params).simulate()
        summary.append({
            "lltv": lltv,
            "liquidations": int(df["liquidations"].sum()),
            "bad_debt": df["bad_debt"].iloc[-1],
            "final_share_price": df["supply_share_price"].iloc[-1],
        })
    return pd.DataFrame(summary)

def main():
    base_params = SimulationParams(
        experiment_name="lltv_comparison",
        random_seed=57,
        price_volatility=0.02,
        simulation_days=60,
    )

    sim = LiquidationSimulation(base_params)
    df = sim.simulate()
    plot_path = sim.plot_results(df)
    logger.info("Saved %s", plot_path)

    summary = compare_lltvs([6250, 7700, 8600, 9150], base_params)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path('research/results') / base_params.experiment_name
    summary.to_csv(output_dir / f"lltv_summary_{timestamp}.csv", index=False)
    print(summary.to_string(index=False))

if __name__ == "__main__":
    main()
