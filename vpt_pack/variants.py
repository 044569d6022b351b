"""Expansion of ``variants`` blockstates into generated models."""

from __future__ import annotations

from typing import Any, Mapping

import logging

from .context import PipelineContext
from .model import ModelReference

log = logging.getLogger(__name__)


def expand_variants(name: str, document: Mapping[str, Any], context: PipelineContext) -> dict[str, Any]:
    """Bake every state of a variants blockstate into its own generated model.

    Only the first of several weighted alternatives is used. States whose
    model ends up without elements are left out.
    """

    new_variants: dict[str, Any] = {}
    count = 0
    for key, value in (document.get("variants") or {}).items():
        alternatives = ModelReference.alternatives(value)
        if not alternatives:
            continue

        model = context.rotate(alternatives[0])
        if model is None or not model.elements:
            log.debug("%s[%s]: no elements, state dropped", name, key)
            continue

        reference = context.add_generated(f"{name}_generated_model_{count}", model)
        count += 1
        new_variants[key] = reference.to_json()

    return {"variants": new_variants}
