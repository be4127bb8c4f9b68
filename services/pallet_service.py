"""
Pallet packer.

Turns one size's pallet allocation into fixed-capacity pallets:
    1. Split units across firmnesses (by unmet need, else by demand weight)
    2. Round and reconcile drift onto the largest-need firmness
    3. Pure pallets first, in declared firmness order
    4. Mixed pallets from the remainders
    5. Pad any short final pallet to capacity

Every emitted pallet totals exactly units_per_pallet.
"""

from typing import Optional
import structlog

from config.replenishment import ReplenishmentConfig, get_replenishment_config
from models.inventory import SkuMetric, SkuStatus
from models.order import Pallet, PalletType

logger = structlog.get_logger(__name__)


class PalletService:
    """Packs a size's units into pallets."""

    def __init__(self, config: Optional[ReplenishmentConfig] = None):
        self.config = config or get_replenishment_config()

    # ===================
    # FIRMNESS SPLIT
    # ===================

    def firmness_weights(self, size: str, metrics: list[SkuMetric]) -> tuple[dict[str, float], bool]:
        """
        Relative share of a size's units per firmness.

        Unmet need drives the split when any eligible firmness is below
        target. Otherwise demand drives it, with the dominant firmness
        boosted. Overstocked firmnesses are left out unless nothing else
        sells.

        Returns:
            (firmness -> weight, True if the weights are need-based)
        """
        config = self.config
        by_firmness = {m.firmness: m for m in metrics if m.size == size}
        eligible = [
            f for f in config.firmnesses
            if f in by_firmness and by_firmness[f].status != SkuStatus.OVERSTOCKED
        ]

        needs = {f: by_firmness[f].units_needed for f in eligible}
        if sum(needs.values()) > 0:
            return {f: needs.get(f, 0.0) for f in config.firmnesses}, True

        def demand_weights(candidates: list[str]) -> dict[str, float]:
            weights = {}
            for firmness in config.firmnesses:
                metric = by_firmness.get(firmness)
                weight = metric.weekly_demand if (metric and firmness in candidates) else 0.0
                if firmness == config.dominant_firmness:
                    weight *= config.dominant_firmness_boost
                weights[firmness] = weight
            return weights

        weights = demand_weights(eligible)
        if sum(weights.values()) <= 0:
            weights = demand_weights(list(by_firmness))
        if sum(weights.values()) <= 0:
            # Nothing sells: split evenly
            weights = {f: 1.0 for f in config.firmnesses}
        return weights, False

    def split_units(self, size: str, total_units: int, metrics: list[SkuMetric]) -> dict[str, int]:
        """
        Whole-unit split of total_units across firmnesses.

        The result always sums to total_units exactly.
        """
        config = self.config
        if total_units <= 0:
            return {f: 0 for f in config.firmnesses}

        weights, need_based = self.firmness_weights(size, metrics)
        total_weight = sum(weights.values())
        units = {f: int(round(total_units * weights[f] / total_weight)) for f in config.firmnesses}

        if not need_based:
            # Every sold firmness gets a minimum
            sold = [f for f in config.firmnesses if weights[f] > 0]
            if len(sold) * config.min_firmness_units <= total_units:
                for firmness in sold:
                    units[firmness] = max(units[firmness], config.min_firmness_units)

        needs = {m.firmness: m.units_needed for m in metrics if m.size == size}
        return self._reconcile(units, total_units, needs, weights)

    def _reconcile(
        self,
        units: dict[str, int],
        total_units: int,
        needs: dict[str, float],
        weights: dict[str, float],
    ) -> dict[str, int]:
        """Push rounding drift onto the largest-need firmness (then largest weight)."""
        firmnesses = self.config.firmnesses
        ranked = sorted(
            firmnesses,
            key=lambda f: (-needs.get(f, 0.0), -weights.get(f, 0.0), firmnesses.index(f)),
        )

        drift = total_units - sum(units.values())
        for firmness in ranked:
            if drift == 0:
                break
            if drift > 0:
                units[firmness] += drift
                drift = 0
            else:
                take = min(units[firmness], -drift)
                units[firmness] -= take
                drift += take

        return units

    # ===================
    # PACKING
    # ===================

    def pack_pallets_for_size(
        self,
        size: str,
        pallet_count: int,
        metrics: list[SkuMetric],
        start_id: int = 1,
        critical: bool = False,
    ) -> list[Pallet]:
        """
        Build pallets for one size.

        Args:
            size: Mattress size
            pallet_count: Pallets allocated to this size
            metrics: SKU metrics (only this size's entries are used)
            start_id: Id of the first pallet (ids run across the order)
            critical: Single-pallet allocation to an urgent size

        Returns:
            pallet_count pallets, each totalling units_per_pallet
        """
        if pallet_count <= 0:
            return []

        capacity = self.config.units_per_pallet
        firmnesses = self.config.firmnesses
        remaining = self.split_units(size, pallet_count * capacity, metrics)
        mixed_type = PalletType.CRITICAL if critical else PalletType.MIXED

        pallets = []
        next_id = start_id

        # Pure pallets, declared order
        for firmness in firmnesses:
            while remaining[firmness] >= capacity:
                pallets.append(Pallet(
                    id=next_id,
                    size=size,
                    type=PalletType.PURE,
                    firmness_breakdown={firmness: capacity},
                    total=capacity,
                ))
                remaining[firmness] -= capacity
                next_id += 1

        # Mixed pallets from what is left
        while sum(remaining.values()) >= capacity:
            breakdown = {}
            filled = 0
            for firmness in firmnesses:
                take = min(remaining[firmness], capacity - filled)
                if take > 0:
                    breakdown[firmness] = take
                    remaining[firmness] -= take
                    filled += take
            pallets.append(Pallet(id=next_id, size=size, type=mixed_type, firmness_breakdown=breakdown, total=filled))
            next_id += 1

        # Short residual: emit it and pad to capacity
        residual = {f: qty for f, qty in remaining.items() if qty > 0}
        if residual:
            weights, _ = self.firmness_weights(size, metrics)
            short = Pallet(
                id=next_id,
                size=size,
                type=mixed_type,
                firmness_breakdown=residual,
                total=sum(residual.values()),
            )
            pallets.append(self._pad_pallet(short, weights))

        logger.debug(
            "pallets_packed",
            size=size,
            pallet_count=len(pallets),
            pure=sum(1 for p in pallets if p.type == PalletType.PURE),
        )
        return pallets

    def _pad_pallet(self, pallet: Pallet, weights: dict[str, float]) -> Pallet:
        """
        Top a short pallet up to capacity using the split weights.

        Guard only: split_units reconciles to pallet_count x capacity, so
        packing never leaves a short residual unless the split is off.
        """
        capacity = self.config.units_per_pallet
        missing = capacity - pallet.total
        if missing <= 0:
            return pallet

        total_weight = sum(weights.values())
        if total_weight <= 0:
            weights = {f: 1.0 for f in self.config.firmnesses}
            total_weight = float(len(weights))

        extra = {f: int(round(missing * weights.get(f, 0.0) / total_weight)) for f in self.config.firmnesses}
        extra = self._reconcile(extra, missing, {}, weights)

        breakdown = dict(pallet.firmness_breakdown)
        for firmness, qty in extra.items():
            if qty > 0:
                breakdown[firmness] = breakdown.get(firmness, 0) + qty

        pallet_type = pallet.type
        if len(breakdown) == 1 and pallet_type == PalletType.MIXED:
            pallet_type = PalletType.PURE

        return Pallet(
            id=pallet.id,
            size=pallet.size,
            type=pallet_type,
            firmness_breakdown=breakdown,
            total=capacity,
        )
