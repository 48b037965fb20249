"""
Tests for the parameter code vocabulary.
"""

from agsi.core.parameters import (
    StandardParameterCode, code_id, get_metadata, is_standard_code, parameter_metadata_table,
    parse_parameter_code, standard_unit,
)


class TestParameterCodes:
    """Test standard and free-text parameter codes."""

    def test_every_standard_code_has_metadata(self):
        """The metadata table covers the whole vocabulary."""
        table = parameter_metadata_table()
        assert set(table) == set(StandardParameterCode)
        assert parameter_metadata_table() is table

    def test_standard_units(self):
        """Standard codes carry their fixed units."""
        assert standard_unit(StandardParameterCode.UNDRAINED_SHEAR_STRENGTH) == "kPa"
        assert standard_unit(StandardParameterCode.ANGLE_FRICTION) == "deg"
        assert standard_unit(StandardParameterCode.POISSONS_RATIO) is None
        assert standard_unit("MyCustomCode") is None

    def test_metadata_category(self):
        """Metadata exposes category and description."""
        metadata = get_metadata(StandardParameterCode.CBR)
        assert metadata.category == "Pavement"
        assert "bearing ratio" in metadata.description

    def test_parse_recognises_code_ids(self):
        """Code ID strings become enum members; other strings stay free text."""
        assert parse_parameter_code("AngleFriction") is StandardParameterCode.ANGLE_FRICTION
        assert parse_parameter_code("LocalIndex") == "LocalIndex"
        assert is_standard_code(parse_parameter_code("Cohesion"))
        assert not is_standard_code("LocalIndex")

    def test_code_id(self):
        """Both kinds render as their code ID."""
        assert code_id(StandardParameterCode.UNIT_WEIGHT_BULK) == "UnitWeightBulk"
        assert code_id("LocalIndex") == "LocalIndex"
