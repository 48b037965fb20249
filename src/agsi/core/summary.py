"""
Read-only statistics of an AGSi document.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from agsi.core.models import Document, GroundModel

logger = logging.getLogger(__name__)


@dataclass
class ModelSummary:
    """Counts for one ground model."""
    id: str
    name: str
    model_type: str
    dimension: str
    material_count: int
    component_count: int
    extent: Optional[Dict[str, float]] = None


@dataclass
class DocumentSummary:
    """Statistics of a document and its models."""
    document_id: str
    schema_version: str
    author: Optional[str]
    model_count: int
    material_count: int
    component_count: int
    models: List[ModelSummary] = field(default_factory=list)
    material_kinds: Dict[str, int] = field(default_factory=dict)
    component_types: Dict[str, int] = field(default_factory=dict)
    properties_per_material: Optional[Dict[str, float]] = None

    def to_text(self) -> str:
        """Render the statistics as a plain-text report."""
        lines = [
            f"Document: {self.document_id}",
            f"  Schema: {self.schema_version}",
        ]
        if self.author:
            lines.append(f"  Author: {self.author}")

        lines.append(f"Models: {self.model_count}")
        for model in self.models:
            lines.append(f"  - {model.name} ({model.id})")
            lines.append(f"    Type: {model.model_type}, Dimension: {model.dimension}")
            lines.append(f"    Materials: {model.material_count}")
            lines.append(f"    Components: {model.component_count}")
            if model.extent:
                e = model.extent
                lines.append(f"    Extent: [{e['minX']:.2f}, {e['maxX']:.2f}] x "
                             f"[{e['minY']:.2f}, {e['maxY']:.2f}]")

        lines.append(f"Materials: {self.material_count}")
        for kind, count in sorted(self.material_kinds.items()):
            lines.append(f"  - {kind}: {count}")
        if self.properties_per_material:
            stats = self.properties_per_material
            lines.append("  Properties per material:")
            lines.append(f"    Average: {stats['average']:.1f}")
            lines.append(f"    Min: {int(stats['min'])}")
            lines.append(f"    Max: {int(stats['max'])}")

        lines.append(f"Components: {self.component_count}")
        for component_type, count in sorted(self.component_types.items()):
            lines.append(f"  - {component_type}: {count}")
        return "\n".join(lines)


def _label(value) -> str:
    return getattr(value, 'value', str(value))


def _extent(model: GroundModel) -> Optional[Dict[str, float]]:
    boundary = model.boundary
    if boundary is None:
        return None
    limits = (boundary.min_x, boundary.max_x, boundary.min_y, boundary.max_y)
    if any(v is None for v in limits):
        return None
    return dict(zip(('minX', 'maxX', 'minY', 'maxY'), limits))


def summarize_document(document: Document) -> DocumentSummary:
    """
    Collect model, material and component statistics of a document.

    Materials are counted in every scope (document table and each model
    table); the document is not modified.

    Args:
        document: Document to summarize

    Returns:
        DocumentSummary
    """
    materials = list(document.all_materials())
    components = [c for model in document.models for c in model.components]

    properties_per_material = None
    if materials:
        counts = np.array([len(m.properties) for m in materials], dtype=float)
        properties_per_material = {
            'average': float(counts.mean()),
            'min': float(counts.min()),
            'max': float(counts.max()),
        }

    summary = DocumentSummary(
        document_id=document.id,
        schema_version=str(document.schema_version),
        author=document.author,
        model_count=len(document.models),
        material_count=len(materials),
        component_count=len(components),
        models=[
            ModelSummary(
                id=model.id,
                name=model.name,
                model_type=_label(model.model_type),
                dimension=_label(model.dimension),
                material_count=len(model.materials),
                component_count=len(model.components),
                extent=_extent(model),
            )
            for model in document.models
        ],
        material_kinds=dict(Counter(_label(m.kind) for m in materials)),
        component_types=dict(Counter(_label(c.component_type) for c in components)),
        properties_per_material=properties_per_material,
    )
    logger.debug(f"Summarized document {document.id}: {summary.model_count} model(s), "
                 f"{summary.material_count} material(s), {summary.component_count} component(s)")
    return summary
