"""
Pallet allocation across sizes.

Two interchangeable strategies behind one interface:

    CoverageProportionalAllocator
        Pallets follow demand share across non-overstocked firmnesses,
        largest-remainder rounding with CRITICAL sizes first. Never forces
        a pallet onto a size it would overstock.

    DominantSkuAllocator
        Driven by one dominant SKU's coverage target. High-volume sizes
        first (crisis mode splits everything between them), small sizes
        by ascending coverage, then force-fill so the container is always
        exactly full.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional
import structlog

from config.replenishment import AllocationStrategy, ReplenishmentConfig
from models.inventory import SkuMetric, SkuStatus
from services.coverage_service import coverage_ratio

logger = structlog.get_logger(__name__)


class PalletAllocator(ABC):
    """Distributes a container's pallets across sizes."""

    strategy: AllocationStrategy

    def __init__(self, config: ReplenishmentConfig):
        self.config = config

    @abstractmethod
    def allocate(self, total_pallets: int, metrics: list[SkuMetric]) -> dict[str, int]:
        """
        Args:
            total_pallets: Pallets in the container
            metrics: SKU metrics at the order's arrival

        Returns:
            size -> pallet count (every configured size present)
        """

    def _empty(self) -> dict[str, int]:
        return {size: 0 for size in self.config.sizes}

    def _by_size(self, metrics: list[SkuMetric]) -> dict[str, list[SkuMetric]]:
        grouped = {size: [] for size in self.config.sizes}
        for metric in metrics:
            if metric.size in grouped:
                grouped[metric.size].append(metric)
        return grouped


class CoverageProportionalAllocator(PalletAllocator):
    """Demand-proportional allocation with critical-first remainders."""

    strategy = AllocationStrategy.COVERAGE_PROPORTIONAL

    def allocate(self, total_pallets: int, metrics: list[SkuMetric]) -> dict[str, int]:
        config = self.config
        allocation = self._empty()
        if total_pallets <= 0:
            return allocation

        eligible = {
            size: [m for m in size_metrics if m.status != SkuStatus.OVERSTOCKED and m.weekly_demand > 0]
            for size, size_metrics in self._by_size(metrics).items()
        }
        size_demand = {size: sum(m.weekly_demand for m in ms) for size, ms in eligible.items()}
        total_demand = sum(size_demand.values())

        if total_demand <= 0:
            logger.info("allocation_skipped_all_overstocked", total_pallets=total_pallets)
            return allocation

        critical = {size: any(m.status == SkuStatus.CRITICAL for m in ms) for size, ms in eligible.items()}

        # Floors of the ideal fractional split
        remainders = {}
        for size, demand in size_demand.items():
            ideal = total_pallets * demand / total_demand
            allocation[size] = math.floor(ideal)
            remainders[size] = ideal - allocation[size]

        leftover = total_pallets - sum(allocation.values())
        candidates = [size for size in config.sizes if size_demand[size] > 0]

        # Largest remainder, CRITICAL sizes always first
        ranked = sorted(
            candidates,
            key=lambda s: (not critical[s], -remainders[s], config.sizes.index(s)),
        )
        for size in ranked:
            if leftover == 0:
                break
            if not critical[size] and self._would_overstock(size, allocation[size] + 1, eligible[size]):
                continue
            allocation[size] += 1
            leftover -= 1

        # Anything still left goes to the lowest-coverage size that stays in range
        while leftover > 0:
            open_sizes = [
                size for size in candidates
                if not self._would_overstock(size, allocation[size] + 1, eligible[size])
            ]
            if not open_sizes:
                break
            size = min(
                open_sizes,
                key=lambda s: (self._coverage_after(allocation[s], eligible[s]), config.sizes.index(s)),
            )
            allocation[size] += 1
            leftover -= 1

        if leftover:
            logger.info("allocation_left_pallets_unassigned", total_pallets=total_pallets, unallocated=leftover)

        return allocation

    def _coverage_after(self, pallets: int, eligible: list[SkuMetric]) -> float:
        """Weeks of coverage for a size's eligible firmnesses after receiving pallets."""
        stock = sum(m.projected_stock for m in eligible) + pallets * self.config.units_per_pallet
        return coverage_ratio(stock, sum(m.weekly_demand for m in eligible))

    def _would_overstock(self, size: str, pallets: int, eligible: list[SkuMetric]) -> bool:
        return self._coverage_after(pallets, eligible) > self.config.overstock_threshold_weeks


class DominantSkuAllocator(PalletAllocator):
    """Allocation driven by the dominant SKU's target at arrival."""

    strategy = AllocationStrategy.DOMINANT_SKU

    def allocate(self, total_pallets: int, metrics: list[SkuMetric]) -> dict[str, int]:
        config = self.config
        allocation = self._empty()
        if total_pallets <= 0:
            return allocation

        by_size = self._by_size(metrics)
        high_volume = [s for s in config.high_volume_sizes if s in by_size] or list(config.sizes)
        small = [s for s in config.sizes if s not in high_volume]

        needs = {size: self._high_volume_need(size, by_size[size]) for size in high_volume}
        combined = sum(needs.values())

        if combined >= total_pallets:
            allocation.update(self._crisis_split(total_pallets, needs))
            logger.info("allocation_crisis_mode", total_pallets=total_pallets, needs=needs)
            return allocation

        allocation.update(needs)
        left = total_pallets - combined

        # Cascade to small sizes, lowest coverage first
        small_needs = {size: self._small_size_need(by_size[size]) for size in small}
        small_order = sorted(small, key=lambda s: (self._size_coverage(by_size[s]), config.sizes.index(s)))
        while left > 0:
            progress = False
            for size in small_order:
                if left == 0:
                    break
                give = min(small_needs[size] - allocation[size], config.small_size_pallet_cap, left)
                if give > 0:
                    allocation[size] += give
                    left -= give
                    progress = True
            if not progress:
                break

        # Force-fill: container must be exactly full
        while left > 0:
            size = min(
                high_volume,
                key=lambda s: (self._size_coverage(by_size[s], allocation[s]), high_volume.index(s)),
            )
            chunk = min(left, max(1, math.ceil(left * config.force_fill_share)))
            allocation[size] += chunk
            left -= chunk

        return allocation

    def _high_volume_need(self, size: str, size_metrics: list[SkuMetric]) -> int:
        """Pallets needed to reach the dominant coverage target at arrival."""
        config = self.config
        months = config.dominant_target_coverage_months
        dominant_ratio = config.firmness_ratio(size, config.dominant_firmness)

        if size == config.dominant_size and dominant_ratio > 0:
            sku = next((m for m in size_metrics if m.firmness == config.dominant_firmness), None)
            projected = sku.projected_stock if sku else 0.0
            sku_monthly = config.monthly_rate(size) * dominant_ratio
            need_units = (sku_monthly * months - projected) / dominant_ratio
        else:
            projected = sum(m.projected_stock for m in size_metrics)
            need_units = config.monthly_rate(size) * months - projected

        return config.pallets_for_units(need_units)

    def _small_size_need(self, size_metrics: list[SkuMetric]) -> int:
        """Pallets to bring a small size to the secondary coverage target."""
        config = self.config
        weekly = sum(m.weekly_demand for m in size_metrics)
        target_weeks = config.secondary_target_coverage_months * config.weeks_per_month
        projected = sum(m.projected_stock for m in size_metrics)
        return config.pallets_for_units(weekly * target_weeks - projected)

    def _size_coverage(self, size_metrics: list[SkuMetric], pallets: int = 0) -> float:
        stock = sum(m.projected_stock for m in size_metrics) + pallets * self.config.units_per_pallet
        return coverage_ratio(stock, sum(m.weekly_demand for m in size_metrics))

    def _crisis_split(self, total_pallets: int, needs: dict[str, int]) -> dict[str, int]:
        """Split the whole container between high-volume sizes by need."""
        sizes = list(needs)
        combined = sum(needs.values())
        split = {}
        for size in sizes[:-1]:
            split[size] = int(math.floor(total_pallets * needs[size] / combined + 0.5))
        split[sizes[-1]] = total_pallets - sum(split.values())

        # Each size with any need gets at least one pallet
        for size in sizes:
            if needs[size] > 0 and split[size] == 0:
                donor = max(sizes, key=lambda s: split[s])
                if split[donor] > 1:
                    split[donor] -= 1
                    split[size] = 1
        return split


ALLOCATORS: dict[AllocationStrategy, type[PalletAllocator]] = {
    AllocationStrategy.COVERAGE_PROPORTIONAL: CoverageProportionalAllocator,
    AllocationStrategy.DOMINANT_SKU: DominantSkuAllocator,
}


def get_allocator(
    config: ReplenishmentConfig,
    strategy: Optional[AllocationStrategy] = None,
) -> PalletAllocator:
    """
    Allocator for a configuration.

    Args:
        config: Business configuration
        strategy: Override for config.allocation_strategy

    Returns:
        PalletAllocator instance
    """
    strategy = AllocationStrategy(strategy or config.allocation_strategy)
    return ALLOCATORS[strategy](config)
