"""State machine documents.

Only the shape is checked. States, transitions, guards and actions carry
many player-specific fields, which are kept as-is.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import Field, model_validator

from dotlottie.schemas.base import DocumentModel, validate_document


class Guard(DocumentModel):
    type: str = Field(min_length=1)
    input_name: Optional[str] = Field(None, alias="inputName")
    condition_type: Optional[str] = Field(None, alias="conditionType")
    compare_to: Optional[Any] = Field(None, alias="compareTo")


class Transition(DocumentModel):
    type: Literal["Transition", "Tweened"]
    to_state: str = Field(alias="toState", min_length=1)
    guards: Optional[list[Guard]] = None
    duration: Optional[float] = None
    easing: Optional[list[float]] = None


class Action(DocumentModel):
    type: str = Field(min_length=1)


class State(DocumentModel):
    name: str = Field(min_length=1)
    type: Literal["PlaybackState", "GlobalState"]
    animation: Optional[str] = None
    transitions: list[Transition] = Field(default_factory=list)
    entry_actions: Optional[list[Action]] = Field(None, alias="entryActions")
    exit_actions: Optional[list[Action]] = Field(None, alias="exitActions")


class Interaction(DocumentModel):
    type: str = Field(min_length=1)
    actions: list[Action] = Field(default_factory=list)
    layer_name: Optional[str] = Field(None, alias="layerName")
    state_name: Optional[str] = Field(None, alias="stateName")


class Input(DocumentModel):
    type: Literal["Numeric", "String", "Boolean", "Event"]
    name: str = Field(min_length=1)
    value: Optional[Union[bool, float, str]] = None


class StateMachineData(DocumentModel):
    initial: str = Field(min_length=1)
    states: list[State] = Field(min_length=1)
    interactions: Optional[list[Interaction]] = None
    inputs: Optional[list[Input]] = None

    @model_validator(mode="after")
    def _state_references(self) -> "StateMachineData":
        names = [state.name for state in self.states]
        if len(set(names)) != len(names):
            raise ValueError("state names must be unique")
        if self.initial not in names:
            raise ValueError(f"initial state {self.initial!r} is not defined")
        for state in self.states:
            for transition in state.transitions:
                if transition.to_state not in names:
                    raise ValueError(
                        f"state {state.name!r} transitions to undefined state {transition.to_state!r}"
                    )
        return self

    def animation_ids(self) -> list[str]:
        """Animation ids referenced by playback states, in state order."""
        return [state.animation for state in self.states if state.animation]


def validate_state_machine_data(data: Any) -> StateMachineData:
    return validate_document(StateMachineData, data, "state machine")
