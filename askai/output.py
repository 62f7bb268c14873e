"""
Answer rendering for stdout: the bare answer at minimal verbosity,
Q/A framing from normal upwards.
"""

from __future__ import annotations

from typing import TextIO

from .settings import Verbosity


def render_answer(prompt: str, answer: str, verbosity: Verbosity, out: TextIO) -> None:
    if verbosity >= Verbosity.NORMAL:
        out.write(f"Q: {prompt}\n\nA: {answer}\n")
    else:
        out.write(f"{answer}\n")
    out.flush()
