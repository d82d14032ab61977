"""Test helper utilities."""

from .lottie import (
    audio_entry,
    block_image,
    color_theme,
    data_url,
    font_entry,
    global_inputs,
    image_entry,
    image_theme,
    make_animation,
    mp3_bytes,
    solid_image,
    state_machine,
    ttf_bytes,
    wav_bytes,
)

__all__ = [
    "audio_entry",
    "block_image",
    "color_theme",
    "data_url",
    "font_entry",
    "global_inputs",
    "image_entry",
    "image_theme",
    "make_animation",
    "mp3_bytes",
    "solid_image",
    "state_machine",
    "ttf_bytes",
    "wav_bytes",
]
