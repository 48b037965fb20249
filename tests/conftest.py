"""
Shared fixtures for document tests.
"""

from datetime import datetime, timezone

import pytest

from agsi.core.geometry import LineString, Point, Polygon, Surface
from agsi.core.geometry_codec import with_encodings
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelBoundary,
    ModelComponent, ModelDimension, ModelType, Project, PropertySource, PropertyValue,
)
from agsi.core.parameters import StandardParameterCode

OBJ_MESH = b"v 0 0 0\nv 10 0 0\nv 0 10 0\nf 1 2 3\n"


@pytest.fixture
def london_clay():
    """Document-level material with numeric, range, text and custom values."""
    material = Material("MAT001", "London Clay", MaterialKind.SOIL,
                        description="Stiff grey fissured clay")
    material.add_property(PropertyValue.numeric(
        StandardParameterCode.UNDRAINED_SHEAR_STRENGTH, 75.0,
        source=PropertySource.TESTED, test_method="UU triaxial"))
    material.add_property(PropertyValue.range(StandardParameterCode.ANGLE_FRICTION, 22.0, 26.0))
    material.add_property(PropertyValue.text(StandardParameterCode.ACEC_CLASS, "AC-2s"))
    material.add_property(PropertyValue.numeric("SiteSpecificIndex", 3.5, unit="-",
                                                case_id="characteristic"))
    return material


@pytest.fixture
def sample_document(london_clay):
    """Document exercising every geometry kind, representable in every format."""
    gravel = Material("MAT002", "Terrace Gravel", MaterialKind.SOIL)
    gravel.add_property(PropertyValue.numeric(StandardParameterCode.UNIT_WEIGHT_BULK, 20.0,
                                              source=PropertySource.LITERATURE))

    model = GroundModel(
        "GM001", "Site stratigraphy", ModelType.STRATIGRAPHIC, ModelDimension.THREE_D,
        description="Interpreted layers", crs="EPSG:27700",
        boundary=ModelBoundary(0.0, 100.0, 0.0, 50.0, 20.0, -30.0),
    )
    model.add_material(Material("MAT101", "Made Ground", MaterialKind.MADE_GROUND))
    model.add_component(ModelComponent(
        "CMP001", "Made ground", ComponentType.LAYER, "MAT101",
        with_encodings(Point((10.0, 20.0, 15.0))), 18.0, 15.0,
        attributes={"borehole": "BH01", "confidence": 0.8, "checked": True,
                    "tags": ["interpreted", "reviewed"], "log": {"depth": 3, "note": None}}))
    model.add_component(ModelComponent(
        "CMP002", "Gravel section", ComponentType.LAYER, "MAT002",
        LineString(((0.0, 0.0, 15.0), (50.0, 0.0, 14.5), (100.0, 0.0, 14.0))), 15.0, 10.0))
    model.add_component(ModelComponent(
        "CMP003", "Clay footprint", ComponentType.VOLUME, "MAT001",
        with_encodings(Polygon(
            ((0.0, 0.0, 10.0), (100.0, 0.0, 10.0), (100.0, 50.0, 10.0), (0.0, 50.0, 10.0)),
            (((40.0, 20.0, 10.0), (60.0, 20.0, 10.0), (60.0, 30.0, 10.0)),),
        )), 10.0, -25.0))
    model.add_component(ModelComponent(
        "CMP004", "Clay surface", ComponentType.BOUNDARY, "MAT001",
        Surface(OBJ_MESH, 3, 1, bounds=((0.0, 0.0, 0.0), (10.0, 10.0, 0.0))))).with_attribute(
            "source", "LiDAR")

    return Document(
        id="DOC001",
        name="Riverside ground model",
        file_name="riverside.agsi.json",
        author="A. Engineer",
        created=datetime(2024, 1, 15, 9, 30, 0, 123456, tzinfo=timezone.utc),
        modified=datetime(2024, 2, 1, 16, 45, tzinfo=timezone.utc),
        project=Project("Riverside Development", client="City Council",
                        country="United Kingdom"),
        materials=[london_clay, gravel],
        models=[model],
    )


@pytest.fixture
def minimal_document():
    """One document-level material and nothing else."""
    document = Document(id="DOC002", created=datetime(2024, 3, 1, tzinfo=timezone.utc))
    document.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
    return document
