"""Generation output schema and views."""

from .schema import (
    OutputStatus,
    GenerationOutput,
    ClassGrid,
    create_generation_output,
    output_from_response,
    load_generation_output,
    class_grid,
)

__all__ = [
    "OutputStatus",
    "GenerationOutput",
    "ClassGrid",
    "create_generation_output",
    "output_from_response",
    "load_generation_output",
    "class_grid",
]
