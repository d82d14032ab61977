"""Theme documents: property override rules keyed by Lottie slot id."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AfterValidator, Field, model_validator

from dotlottie.schemas.base import DocumentModel, validate_document


def _color_components(value: list[float]) -> list[float]:
    if len(value) not in (3, 4):
        raise ValueError("color must have 3 or 4 components")
    return value


ColorValue = Annotated[list[float], AfterValidator(_color_components)]


class Keyframe(DocumentModel):
    frame: float
    in_tangent: Optional[Any] = Field(None, alias="inTangent")
    out_tangent: Optional[Any] = Field(None, alias="outTangent")
    hold: Optional[bool] = None


class ColorKeyframe(Keyframe):
    value: ColorValue


class ScalarKeyframe(Keyframe):
    value: float


class PositionKeyframe(Keyframe):
    value: list[float]
    value_in_tangent: Optional[list[float]] = Field(None, alias="valueInTangent")
    value_out_tangent: Optional[list[float]] = Field(None, alias="valueOutTangent")


class VectorKeyframe(Keyframe):
    value: list[float]


class GradientStop(DocumentModel):
    color: list[float]
    offset: float


class GradientKeyframe(Keyframe):
    value: list[GradientStop]


class ImageValue(DocumentModel):
    id: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    url: Optional[str] = None


class ImageKeyframe(Keyframe):
    value: ImageValue


class TextDocument(DocumentModel):
    text: Optional[str] = None
    font_name: Optional[str] = Field(None, alias="fontName")
    font_size: Optional[float] = Field(None, alias="fontSize")
    fill_color: Optional[list[float]] = Field(None, alias="fillColor")
    stroke_color: Optional[list[float]] = Field(None, alias="strokeColor")
    justify: Optional[str] = None
    line_height: Optional[float] = Field(None, alias="lineHeight")


class TextKeyframe(Keyframe):
    value: TextDocument


class _Rule(DocumentModel):
    id: str = Field(min_length=1)
    animations: Optional[list[str]] = None
    expression: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "_Rule":
        present = [
            name
            for name in ("value", "keyframes", "expression")
            if getattr(self, name, None) is not None
        ]
        if len(present) != 1:
            raise ValueError(
                f"rule {self.id!r} must define exactly one of value, keyframes, expression"
            )
        return self


class ColorRule(_Rule):
    type: Literal["Color"]
    value: Optional[ColorValue] = None
    keyframes: Optional[list[ColorKeyframe]] = None


class ScalarRule(_Rule):
    type: Literal["Scalar"]
    value: Optional[float] = None
    keyframes: Optional[list[ScalarKeyframe]] = None


class PositionRule(_Rule):
    type: Literal["Position"]
    value: Optional[list[float]] = None
    keyframes: Optional[list[PositionKeyframe]] = None
    split: Optional[bool] = None


class VectorRule(_Rule):
    type: Literal["Vector"]
    value: Optional[list[float]] = None
    keyframes: Optional[list[VectorKeyframe]] = None


class ImageRule(_Rule):
    type: Literal["Image"]
    value: Optional[ImageValue] = None
    keyframes: Optional[list[ImageKeyframe]] = None


class GradientRule(_Rule):
    type: Literal["Gradient"]
    # A string value is an image reference (data url or archive path).
    value: Optional[Union[list[GradientStop], str]] = None
    keyframes: Optional[list[GradientKeyframe]] = None


class TextRule(_Rule):
    type: Literal["Text"]
    value: Optional[TextDocument] = None
    keyframes: Optional[list[TextKeyframe]] = None


ThemeRule = Annotated[
    Union[ColorRule, ScalarRule, PositionRule, VectorRule, ImageRule, GradientRule, TextRule],
    Field(discriminator="type"),
]


class ThemeData(DocumentModel):
    rules: list[ThemeRule]

    @model_validator(mode="after")
    def _unique_rule_ids(self) -> "ThemeData":
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"duplicate rule id {rule.id!r}")
            seen.add(rule.id)
        return self


def validate_theme_data(data: Any) -> ThemeData:
    return validate_document(ThemeData, data, "theme")
