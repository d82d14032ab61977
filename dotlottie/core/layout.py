"""Archive layout helpers for deterministic entry paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from dotlottie.errors import SchemaViolation

ANIMATIONS_DIR = "animations"


@dataclass(frozen=True)
class ContainerLayout:
    """Entry paths for one container generation."""
    generation: str
    themes_dir: str
    state_machines_dir: str
    global_inputs_dir: Optional[str]
    theme_extensions: tuple[str, ...]

    def animation_path(self, animation_id: str) -> str:
        return f"{ANIMATIONS_DIR}/{animation_id}.json"

    def theme_path(self, theme_id: str) -> str:
        return f"{self.themes_dir}/{theme_id}.json"

    def state_machine_path(self, state_machine_id: str) -> str:
        return f"{self.state_machines_dir}/{state_machine_id}.json"

    def global_inputs_path(self, global_inputs_id: str) -> str:
        if self.global_inputs_dir is None:
            raise SchemaViolation(f"Global inputs are not supported by container version {self.generation}")
        return f"{self.global_inputs_dir}/{global_inputs_id}.json"


V2_LAYOUT = ContainerLayout(
    generation="2",
    themes_dir="themes",
    state_machines_dir="state_machines",
    global_inputs_dir="global_inputs",
    theme_extensions=("json",),
)

V1_LAYOUT = ContainerLayout(
    generation="1",
    themes_dir="themes",
    state_machines_dir="states",
    global_inputs_dir=None,
    theme_extensions=("json", "lss"),
)


def layout_for(generation: str) -> ContainerLayout:
    if generation == "2":
        return V2_LAYOUT
    if generation == "1":
        return V1_LAYOUT
    raise ValueError(f"Unsupported container version: {generation}")
