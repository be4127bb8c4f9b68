"""
Spring order service.

Composes coverage, allocation and packing into one SpringOrder:
    metrics -> size allocation -> pallets -> springs aggregate + metadata
"""

from typing import Optional
import structlog

from config.replenishment import AllocationStrategy, ReplenishmentConfig, get_replenishment_config
from exceptions import UnsupportedOperationError
from models.inventory import Inventory, PendingOrder, SkuMetric, SkuStatus
from models.order import OrderMetadata, Pallet, PalletType, SpringOrder
from services.allocation_service import get_allocator
from services.coverage_service import CoverageService
from services.pallet_service import PalletService

logger = structlog.get_logger(__name__)


class SpringOrderService:
    """
    Spring order business logic.

    Invariants of every returned order:
        - each pallet totals units_per_pallet
        - sum of pallet totals == metadata.total_pallets x units_per_pallet
        - springs aggregate == sum over pallets
    """

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config()
        self.coverage_service = CoverageService(self.config)
        self.pallet_service = PalletService(self.config)

    def calculate_spring_order(
        self,
        pallet_count: int,
        inventory: Inventory,
        pending_orders: Optional[list[PendingOrder]] = None,
        order_week_offset: float = 0,
        strategy: Optional[AllocationStrategy] = None,
    ) -> SpringOrder:
        """
        Build a spring order for one container.

        Args:
            pallet_count: Pallets in the container (non-positive -> empty order)
            inventory: Current warehouse stock (not mutated)
            pending_orders: Containers already ordered
            order_week_offset: Weeks from now until the order is placed
            strategy: Allocation strategy override

        Returns:
            SpringOrder with pallets, aggregate quantities and metadata

        Raises:
            UnsupportedOperationError: Product line ships loose (no pallets)
        """
        config = self.config
        if not config.is_pallet_based:
            raise UnsupportedOperationError(config.product_line, "Pallet spring order")

        requested = max(0, int(pallet_count or 0))
        metrics = self.coverage_service.calculate_sku_metrics(inventory, pending_orders, order_week_offset)
        allocator = get_allocator(config, strategy)
        allocation = allocator.allocate(requested, metrics)

        pallets: list[Pallet] = []
        for size in config.sizes:
            count = allocation.get(size, 0)
            if count <= 0:
                continue
            size_metrics = [m for m in metrics if m.size == size]
            critical = count == 1 and any(m.status == SkuStatus.CRITICAL for m in size_metrics)
            pallets.extend(self.pallet_service.pack_pallets_for_size(
                size,
                count,
                size_metrics,
                start_id=len(pallets) + 1,
                critical=critical,
            ))

        springs = self._aggregate(pallets)
        metadata = self._build_metadata(requested, pallets, metrics, allocator.strategy)

        logger.info(
            "spring_order_calculated",
            product_line=config.product_line,
            strategy=allocator.strategy.value,
            requested_pallets=requested,
            total_pallets=metadata.total_pallets,
            pallets_by_size=metadata.pallets_by_size,
        )

        return SpringOrder(springs=springs, pallets=pallets, metadata=metadata, sku_metrics=metrics)

    def _aggregate(self, pallets: list[Pallet]) -> dict[str, dict[str, int]]:
        """firmness -> size -> units, summed over pallets."""
        springs = {f: {size: 0 for size in self.config.sizes} for f in self.config.firmnesses}
        for pallet in pallets:
            for firmness, qty in pallet.firmness_breakdown.items():
                by_size = springs.setdefault(firmness, {})
                by_size[pallet.size] = by_size.get(pallet.size, 0) + qty
        return springs

    def _build_metadata(
        self,
        requested: int,
        pallets: list[Pallet],
        metrics: list[SkuMetric],
        strategy: AllocationStrategy,
    ) -> OrderMetadata:
        config = self.config
        pallets_by_size = {size: 0 for size in config.sizes}
        for pallet in pallets:
            pallets_by_size[pallet.size] = pallets_by_size.get(pallet.size, 0) + 1

        return OrderMetadata(
            total_pallets=len(pallets),
            requested_pallets=requested,
            unallocated_pallets=max(0, requested - len(pallets)),
            total_units=sum(p.total for p in pallets),
            pure_pallets=sum(1 for p in pallets if p.type == PalletType.PURE),
            mixed_pallets=sum(1 for p in pallets if p.type == PalletType.MIXED),
            critical_pallets=sum(1 for p in pallets if p.type == PalletType.CRITICAL),
            pallets_by_size=pallets_by_size,
            high_volume_pallets=sum(pallets_by_size.get(s, 0) for s in config.high_volume_sizes),
            small_size_pallets=sum(pallets_by_size.get(s, 0) for s in config.small_sizes),
            sizes_allocated=[s for s in config.sizes if pallets_by_size.get(s, 0) > 0],
            critical_skus=sum(1 for m in metrics if m.status == SkuStatus.CRITICAL),
            overstocked_skus=sum(1 for m in metrics if m.status == SkuStatus.OVERSTOCKED),
            strategy=strategy.value,
        )
