"""Global inputs: typed values shared between themes and state machines."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, RootModel

from dotlottie.schemas.base import DocumentModel, validate_document
from dotlottie.schemas.theme import GradientStop, ImageValue


class ThemeBinding(DocumentModel):
    theme_id: str = Field(alias="themeId", min_length=1)
    rule_id: str = Field(alias="ruleId", min_length=1)
    path: Optional[str] = None


class StateMachineBinding(DocumentModel):
    state_machine_id: str = Field(alias="stateMachineId", min_length=1)
    input_name: list[str] = Field(alias="inputName")


class Bindings(DocumentModel):
    themes: Optional[list[ThemeBinding]] = None
    state_machines: Optional[list[StateMachineBinding]] = Field(None, alias="stateMachines")


class _Input(DocumentModel):
    bindings: Optional[Bindings] = None


class BooleanInput(_Input):
    type: Literal["Boolean"]
    value: bool


class NumericInput(_Input):
    type: Literal["Numeric", "Scalar"]
    value: float


class StringInput(_Input):
    type: Literal["String"]
    value: str


class ColorInput(_Input):
    type: Literal["Color"]
    value: list[float]


class VectorInput(_Input):
    type: Literal["Vector"]
    value: list[float]


class ImageInput(_Input):
    type: Literal["Image"]
    value: ImageValue


class GradientInput(_Input):
    type: Literal["Gradient"]
    value: list[GradientStop]


GlobalInput = Annotated[
    Union[
        BooleanInput,
        NumericInput,
        StringInput,
        ColorInput,
        VectorInput,
        ImageInput,
        GradientInput,
    ],
    Field(discriminator="type"),
]


class GlobalInputsData(RootModel[dict[str, GlobalInput]]):
    def theme_ids(self) -> list[str]:
        """Theme ids named by any binding, first-seen order."""
        seen: dict[str, None] = {}
        for item in self.root.values():
            if item.bindings and item.bindings.themes:
                for binding in item.bindings.themes:
                    seen.setdefault(binding.theme_id, None)
        return list(seen)

    def state_machine_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for item in self.root.values():
            if item.bindings and item.bindings.state_machines:
                for binding in item.bindings.state_machines:
                    seen.setdefault(binding.state_machine_id, None)
        return list(seen)


def validate_global_inputs_data(data: Any) -> GlobalInputsData:
    return validate_document(GlobalInputsData, data, "global inputs")
