"""Per-run state shared by the pipeline phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import logging

from .errors import ModelNotFoundError
from .model import Model, ModelReference
from .rotation import apply_reference_rotation

log = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Stores built up during one conversion.

    ``raw_models`` and ``blockstates`` hold what was read from the archives
    and are not modified after loading. Every model created by blockstate
    expansion goes into ``generated_models``; ``variants`` receives the
    normalized blockstate documents.
    """

    raw_models: Dict[str, Model] = field(default_factory=dict)
    blockstates: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    generated_models: Dict[str, Model] = field(default_factory=dict)
    variants: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    strict: bool = True

    def rotate(self, reference: ModelReference) -> Optional[Model]:
        """Rotated copy of the referenced model, or None for a missing model in lenient mode."""

        try:
            return apply_reference_rotation(reference, self.raw_models)
        except ModelNotFoundError as exc:
            if self.strict:
                raise
            log.warning("Skipping reference: %s", exc)
            return None

    def add_generated(self, name: str, model: Model) -> ModelReference:
        self.generated_models[name] = model
        return ModelReference(model="minecraft:block/" + name)
