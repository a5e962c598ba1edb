"""Route construction, refinement, partitioning and comparison."""

from .comparator import compare_routes
from .constructor import build_route
from .partitioner import split_into_routes
from .refiner import refine_route

__all__ = ["build_route", "compare_routes", "refine_route", "split_into_routes"]
