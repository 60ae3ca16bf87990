"""Layout relaxation for the fragment plane."""

from .relaxation import RelaxationEngine, RelaxationReport, relax_positions, relax_positions_grid

__all__ = [
    "RelaxationEngine",
    "RelaxationReport",
    "relax_positions",
    "relax_positions_grid",
]
