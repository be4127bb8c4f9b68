"""
Replenishment business configuration.

Sales rates, firmness ratios, seasonality, container limits and component
rules are plain data carried by a ReplenishmentConfig object. Every service
receives one explicitly, so several business configurations can run side by
side (e.g. the spring line and the latex line).

Presets:
    spring_config(): 5 sizes x 3 firmnesses = 15 SKUs, 6 component types
    latex_config():  2 sizes x 3 firmnesses = 6 SKUs, shipped loose, no components
"""

import math
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field, ValidationError as PydanticValidationError, model_validator

from exceptions import ConfigurationError, ProductLineNotFoundError
from models.base import BaseSchema

logger = structlog.get_logger(__name__)


# =============================================================================
# FIXED BUSINESS CONSTRAINTS (spring line defaults)
# =============================================================================

# Container ships 10 weeks after the order is placed
LEAD_TIME_WEEKS = 10

# Supplier requirement: every pallet carries exactly 30 springs
SPRINGS_PER_PALLET = 30

# Container limits
MIN_PALLETS = 4
MAX_PALLETS = 12
DEFAULT_PALLETS = 8

# Lead time is converted to months with 4-week months (10 weeks = 2.5 months)
WEEKS_PER_MONTH = 4.0

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# Monthly demand multipliers (index 0 = January)
SEASONAL_DEMAND = [
    1.00,  # January
    1.00,  # February
    1.00,  # March
    1.00,  # April
    1.10,  # May
    1.15,  # June
    1.25,  # July
    1.25,  # August
    1.10,  # September
    1.05,  # October
    1.20,  # November
    1.10,  # December
]

# Derived from 960 units/year. King + Queen = 88% of sales.
MONTHLY_SALES_RATE = {
    "King": 30.0,
    "Queen": 41.0,
    "Double": 6.0,
    "King Single": 3.0,
    "Single": 1.0,
}

FIRMNESS_DISTRIBUTION = {
    "King": {"firm": 0.1356, "medium": 0.8446, "soft": 0.0198},
    "Queen": {"firm": 0.1344, "medium": 0.8269, "soft": 0.0387},
    "Double": {"firm": 0.2121, "medium": 0.6061, "soft": 0.1818},
    "King Single": {"firm": 0.1622, "medium": 0.6216, "soft": 0.2162},
    "Single": {"firm": 0.2500, "medium": 0.5833, "soft": 0.1667},
}

# Minimum weeks of coverage at arrival before a SKU is CRITICAL
MIN_COVERAGE_WEEKS = {
    "King": 6.0,
    "Queen": 8.0,
    "Double": 6.0,
    "King Single": 6.0,
    "Single": 6.0,
}

# Above this many weeks of projected coverage a SKU is OVERSTOCKED
OVERSTOCK_THRESHOLD_WEEKS = 26.0

# Latex line: items ship loose, 20ft container = 170 units, 40ft = 340 units
LATEX_CONTAINER_20FT = 170
LATEX_CONTAINER_40FT = 340

# Loose-item orders are placed in multiples of 5
BATCH_INCREMENT = 5

# Order timing calendar: flag a size once coverage drops below this many months
# (2.5 months lead time + 1 month buffer)
ORDER_TRIGGER_THRESHOLD_MONTHS = 3.5


class AllocationStrategy(str, Enum):
    """How a container's pallets are split across sizes."""
    COVERAGE_PROPORTIONAL = "coverage_proportional"
    DOMINANT_SKU = "dominant_sku"


class ComponentType(BaseSchema):
    """A downstream component ordered alongside springs."""

    id: str = Field(..., min_length=1, description="Component identifier, e.g. micro_coils")
    name: str = Field(..., description="Display name")
    multiplier: float = Field(..., gt=0, description="Units consumed per spring")
    lot_size: int = Field(..., ge=1, description="Supplier lot size (export rounding only)")


class Consolidation(BaseSchema):
    """
    Component stock for some sizes is cut from a larger size.

    Orders for `source_sizes` are added to `target_size` and zeroed at the
    source; depletion of source sizes draws on the target's stock.
    """

    component_id: str
    target_size: str
    source_sizes: list[str] = Field(default_factory=list)


class ReplenishmentConfig(BaseSchema):
    """
    Complete business configuration for one product line.

    All thresholds are data, not logic: swap the object to change behavior.
    """

    product_line: str = Field("springs", description="Product line identifier")

    # ===================
    # SKU UNIVERSE
    # ===================
    sizes: list[str] = Field(default_factory=lambda: list(MONTHLY_SALES_RATE))
    firmnesses: list[str] = Field(
        default_factory=lambda: ["firm", "medium", "soft"],
        description="Declared order; pallets are packed in this order",
    )

    # ===================
    # DEMAND
    # ===================
    monthly_sales_rate: dict[str, float] = Field(default_factory=lambda: dict(MONTHLY_SALES_RATE))
    firmness_distribution: dict[str, dict[str, float]] = Field(
        default_factory=lambda: {size: dict(ratios) for size, ratios in FIRMNESS_DISTRIBUTION.items()}
    )
    seasonal_demand: list[float] = Field(default_factory=lambda: list(SEASONAL_DEMAND))
    weeks_per_month: float = Field(WEEKS_PER_MONTH, gt=0, le=5)

    # ===================
    # CONTAINER CONSTRAINTS
    # ===================
    lead_time_weeks: float = Field(LEAD_TIME_WEEKS, gt=0, le=52)
    units_per_pallet: int = Field(SPRINGS_PER_PALLET, ge=1, le=1000)
    min_pallets: int = Field(MIN_PALLETS, ge=1)
    max_pallets: int = Field(MAX_PALLETS, ge=1)
    default_pallets: int = Field(DEFAULT_PALLETS, ge=1)
    container_capacities: list[int] = Field(
        default_factory=list,
        description="Unit capacities for lines shipped loose (empty = pallet-based line)",
    )
    batch_increment: int = Field(BATCH_INCREMENT, ge=1, description="Loose-item order multiple")

    # ===================
    # COMPONENTS
    # ===================
    components: list[ComponentType] = Field(default_factory=lambda: [
        ComponentType(id="micro_coils", name="Micro Coils", multiplier=1.5, lot_size=20),
        ComponentType(id="thin_latex", name="Thin Latex", multiplier=1.5, lot_size=10),
        ComponentType(id="felt", name="Felt", multiplier=1.0, lot_size=10),
        ComponentType(id="top_panel", name="Top Panel", multiplier=1.0, lot_size=10),
        ComponentType(id="bottom_panel", name="Bottom Panel", multiplier=1.0, lot_size=20),
        ComponentType(id="side_panel", name="Side Panel", multiplier=1.0, lot_size=20),
    ])
    component_exclusions: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "micro_coils": ["Double", "King Single", "Single"],
            "thin_latex": ["Double", "King Single", "Single"],
        },
        description="Component -> sizes where it is not manufactured",
    )
    consolidations: list[Consolidation] = Field(default_factory=lambda: [
        Consolidation(component_id="side_panel", target_size="Double", source_sizes=["Single", "King Single"]),
    ])
    paired_components: list[list[str]] = Field(
        default_factory=lambda: [["micro_coils", "thin_latex"]],
        description="Components used together; export rounding keeps them equal",
    )

    # ===================
    # CLASSIFICATION THRESHOLDS
    # ===================
    min_coverage_weeks: dict[str, float] = Field(default_factory=lambda: dict(MIN_COVERAGE_WEEKS))
    default_min_coverage_weeks: float = Field(6.0, ge=0)
    overstock_threshold_weeks: float = Field(OVERSTOCK_THRESHOLD_WEEKS, gt=0)

    # ===================
    # ALLOCATION
    # ===================
    allocation_strategy: AllocationStrategy = AllocationStrategy.COVERAGE_PROPORTIONAL
    high_volume_sizes: list[str] = Field(default_factory=lambda: ["King", "Queen"])
    dominant_size: str = "Queen"
    dominant_firmness: str = "medium"
    dominant_firmness_boost: float = Field(1.10, ge=1.0, le=2.0)
    min_firmness_units: int = Field(2, ge=0)
    dominant_target_coverage_months: float = Field(6.0, gt=0)
    small_size_pallet_cap: int = Field(2, ge=1)
    force_fill_share: float = Field(0.6, gt=0, le=1.0)

    # ===================
    # PREDICTIVE TRIGGER
    # ===================
    trigger_target_units: float = Field(85.0, ge=0, description="Dominant SKU units wanted at arrival")
    trigger_tolerance_months: float = Field(0.8, ge=0)
    arrival_coverage_window_months: float = Field(1.0, ge=0)
    emergency_floor_units: float = Field(100.0, ge=0)
    lookahead_step_months: float = Field(0.1, gt=0, le=1.0)
    lookahead_horizon_months: float = Field(12.0, gt=0)
    max_open_containers: int = Field(2, ge=1)
    projection_months: int = Field(12, ge=1, le=36)
    order_trigger_threshold_months: float = Field(ORDER_TRIGGER_THRESHOLD_MONTHS, ge=0)

    # ===================
    # DYNAMIC PALLET SIZING
    # ===================
    dominant_target_units_at_arrival: float = Field(60.0, ge=0)
    secondary_target_coverage_months: float = Field(2.0, ge=0)
    critical_coverage_months_high_volume: float = Field(4.0, ge=0)
    critical_coverage_months_small: float = Field(3.0, ge=0)

    # ===================
    # LOT-SIZE EXPORT ROUNDING
    # ===================
    lot_buffer_units: int = Field(20, ge=0)
    large_lot_size: int = Field(20, ge=1)
    large_lot_buffer_threshold: int = Field(10, ge=0)
    small_lot_buffer_threshold: int = Field(5, ge=0)

    @model_validator(mode="after")
    def _check_consistency(self) -> "ReplenishmentConfig":
        if len(self.seasonal_demand) != 12:
            raise ValueError("seasonal_demand must have 12 monthly multipliers")
        if self.min_pallets > self.max_pallets:
            raise ValueError("min_pallets cannot exceed max_pallets")
        if any(c <= 0 for c in self.container_capacities):
            raise ValueError("container_capacities must be positive")
        return self

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def lead_time_months(self) -> float:
        """Lead time expressed in months (10 weeks = 2.5 months)."""
        return self.lead_time_weeks / self.weeks_per_month

    @property
    def is_pallet_based(self) -> bool:
        """Springs ship on fixed-capacity pallets; latex ships loose by container capacity."""
        return not self.container_capacities

    @property
    def small_sizes(self) -> list[str]:
        """Low-volume sizes (everything that is not high-volume)."""
        return [s for s in self.sizes if s not in self.high_volume_sizes]

    def monthly_rate(self, size: str) -> float:
        return self.monthly_sales_rate.get(size, 0.0)

    def weekly_rate(self, size: str) -> float:
        return self.monthly_rate(size) / self.weeks_per_month

    def firmness_ratio(self, size: str, firmness: str) -> float:
        return self.firmness_distribution.get(size, {}).get(firmness, 0.0)

    def seasonal_multiplier(self, month_index: int) -> float:
        """Multiplier for a calendar month index (wraps past December)."""
        return self.seasonal_demand[month_index % 12]

    def min_coverage_for(self, size: str) -> float:
        return self.min_coverage_weeks.get(size, self.default_min_coverage_weeks)

    def component(self, component_id: str) -> Optional[ComponentType]:
        for comp in self.components:
            if comp.id == component_id:
                return comp
        return None

    def is_excluded(self, component_id: str, size: str) -> bool:
        return size in self.component_exclusions.get(component_id, [])

    def consolidation_target(self, component_id: str, size: str) -> Optional[str]:
        """Size whose stock a (component, size) pair is cut from, if consolidated."""
        for rule in self.consolidations:
            if rule.component_id == component_id and size in rule.source_sizes:
                return rule.target_size
        return None

    def pallets_for_units(self, units: float) -> int:
        """Ceiling division of a unit need into whole pallets."""
        if units <= 0:
            return 0
        return math.ceil(units / self.units_per_pallet)


def spring_config(**overrides) -> ReplenishmentConfig:
    """Default spring product line (15 SKUs)."""
    return ReplenishmentConfig(**overrides)


def latex_config(**overrides) -> ReplenishmentConfig:
    """
    Latex comfort layers: King and Queen only, three firmnesses.

    Smaller mattresses are cut from these sheets, so their demand is
    folded into the two latex sizes (King += half a Single, Queen +=
    Double + King Single). Latex ships loose: an order fills a 170-unit
    20ft or 340-unit 40ft container item by item, in batches of 5.
    """
    values = dict(
        product_line="latex",
        sizes=["King", "Queen"],
        monthly_sales_rate={
            "King": MONTHLY_SALES_RATE["King"] + 0.5 * MONTHLY_SALES_RATE["Single"],
            "Queen": MONTHLY_SALES_RATE["Queen"] + MONTHLY_SALES_RATE["Double"] + MONTHLY_SALES_RATE["King Single"],
        },
        firmness_distribution={
            "King": dict(FIRMNESS_DISTRIBUTION["King"]),
            "Queen": dict(FIRMNESS_DISTRIBUTION["Queen"]),
        },
        container_capacities=[LATEX_CONTAINER_20FT, LATEX_CONTAINER_40FT],
        components=[],
        component_exclusions={},
        consolidations=[],
        paired_components=[],
        min_coverage_weeks={"King": 8.0, "Queen": 8.0},
        default_min_coverage_weeks=8.0,
        high_volume_sizes=["King", "Queen"],
    )
    values.update(overrides)
    return ReplenishmentConfig(**values)


PRODUCT_LINES = {
    "springs": spring_config,
    "latex": latex_config,
}


def load_config_file(path: str) -> ReplenishmentConfig:
    """
    Load a ReplenishmentConfig from a JSON file.

    Args:
        path: Path to a JSON document matching ReplenishmentConfig

    Returns:
        Parsed configuration

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file: {path}", details={"error": str(e)})

    try:
        config = ReplenishmentConfig.model_validate_json(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid config file: {path}",
            details={"errors": e.errors(include_url=False, include_context=False)},
        )

    logger.info("replenishment_config_loaded", path=path, product_line=config.product_line)
    return config


def get_replenishment_config(
    product_line: Optional[str] = None,
    config_file: Optional[str] = None,
) -> ReplenishmentConfig:
    """
    Resolve the business configuration for a product line.

    A config file, when given, wins over the built-in presets.

    Args:
        product_line: "springs" or "latex" (defaults to settings)
        config_file: Optional JSON override (defaults to settings)

    Returns:
        ReplenishmentConfig

    Raises:
        ProductLineNotFoundError: Unknown product line
        ConfigurationError: Config file unreadable or invalid
    """
    from config.settings import get_settings

    app_settings = get_settings()
    config_file = config_file or app_settings.replenishment_config_file
    if config_file:
        return load_config_file(config_file)

    product_line = product_line or app_settings.default_product_line
    factory = PRODUCT_LINES.get(product_line)
    if factory is None:
        raise ProductLineNotFoundError(product_line)
    return factory()
