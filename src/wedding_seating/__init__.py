"""WeddingSeating package."""
from .models import (
    Guest,
    OptimizationCriteria,
    PreferenceKind,
    Relationship,
    RelationshipKind,
    RelationshipLink,
    SeatingPlan,
    SeatingPreference,
    Side,
    Table,
)
from .csv_loader import (
    attach_relationships,
    load_guests,
    load_preferences,
    load_relationships,
    load_tables,
    load_all,
)
from .errors import InsufficientCapacityError, RepairInvariantError
from .optimizer import OptimizationResult, OptimizerSettings, OptimizerState, SeatingOptimizer, optimize

__all__ = [
    "Guest",
    "OptimizationCriteria",
    "PreferenceKind",
    "Relationship",
    "RelationshipKind",
    "RelationshipLink",
    "SeatingPlan",
    "SeatingPreference",
    "Side",
    "Table",
    "attach_relationships",
    "load_guests",
    "load_preferences",
    "load_relationships",
    "load_tables",
    "load_all",
    "InsufficientCapacityError",
    "RepairInvariantError",
    "OptimizationResult",
    "OptimizerSettings",
    "OptimizerState",
    "SeatingOptimizer",
    "optimize",
]
