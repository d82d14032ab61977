"""Pydantic schemas for container documents."""

from __future__ import annotations

from dotlottie.schemas.global_inputs import GlobalInputsData, validate_global_inputs_data
from dotlottie.schemas.manifest import Manifest, ManifestV1, ManifestV2
from dotlottie.schemas.state_machine import StateMachineData, validate_state_machine_data
from dotlottie.schemas.theme import ThemeData, validate_theme_data

__all__ = [
    "GlobalInputsData",
    "Manifest",
    "ManifestV1",
    "ManifestV2",
    "StateMachineData",
    "ThemeData",
    "validate_global_inputs_data",
    "validate_state_machine_data",
    "validate_theme_data",
]
