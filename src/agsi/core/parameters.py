"""
Controlled vocabulary of AGSi parameter codes.

Material property values are keyed by a parameter code which is either a
member of the standard vocabulary (each with a fixed unit, category and
description) or an arbitrary free-text code for project-specific parameters.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, Optional, Union


class StandardParameterCode(Enum):
    """Standard AGSi parameter codes (value is the AGSi code ID)."""
    # General
    DEPTH = "Depth"
    ELEVATION = "Elevation"
    ANALYSIS_DRAINAGE_CONDITION = "AnalysisDrainageCondition"

    # Density
    UNIT_WEIGHT_BULK = "UnitWeightBulk"

    # Strength
    ANGLE_FRICTION = "AngleFriction"
    ANGLE_FRICTION_PEAK = "AngleFrictionPeak"
    ANGLE_FRICTION_CRITICAL = "AngleFrictionCritical"
    ANGLE_FRICTION_RESIDUAL = "AngleFrictionResidual"
    ANGLE_DILATION = "AngleDilation"
    COHESION = "Cohesion"
    UNDRAINED_SHEAR_STRENGTH = "UndrainedShearStrength"
    UNDRAINED_SHEAR_STRENGTH_TRIAXIAL = "UndrainedShearStrengthTriaxial"
    UNIAXIAL_COMPRESSIVE_STRENGTH = "UniaxialCompressiveStrength"

    # Stiffness
    YOUNGS_MODULUS_DRAINED = "YoungsModulusDrained"
    YOUNGS_MODULUS_UNDRAINED = "YoungsModulusUndrained"
    YOUNGS_MODULUS_DRAINED_VERTICAL = "YoungsModulusDrainedVertical"
    YOUNGS_MODULUS_UNDRAINED_VERTICAL = "YoungsModulusUndrainedVertical"
    YOUNGS_MODULUS_DRAINED_HORIZONTAL = "YoungsModulusDrainedHorizontal"
    YOUNGS_MODULUS_UNDRAINED_HORIZONTAL = "YoungsModulusUndrainedHorizontal"
    BULK_MODULUS = "BulkModulus"
    SHEAR_MODULUS_DRAINED = "ShearModulusDrained"
    SHEAR_MODULUS_UNDRAINED = "ShearModulusUndrained"
    POISSONS_RATIO = "PoissonsRatio"

    # Retaining wall
    COEFFICIENT_LATERAL_EARTH_PRESSURE_AT_REST = "CoefficientLateralEarthPressureAtRest"
    COEFFICIENT_LATERAL_EARTH_PRESSURE_ACTIVE = "CoefficientLateralEarthPressureActive"
    COEFFICIENT_LATERAL_EARTH_PRESSURE_PASSIVE = "CoefficientLateralEarthPressurePassive"
    COEFFICIENT_LATERAL_EARTH_PRESSURE_STAR = "CoefficientLateralEarthPressureStar"

    # Pavement
    CBR = "CBR"
    SUBGRADE_SURFACE_MODULUS = "SubgradeSurfaceModulus"

    # Permeability
    PERMEABILITY = "Permeability"
    PERMEABILITY_HORIZONTAL = "PermeabilityHorizontal"
    PERMEABILITY_VERTICAL = "PermeabilityVertical"

    # ACEC
    ACEC_CLASS = "ACECClass"
    ACEC_DS_CLASS = "ACECDSClass"
    ACEC_CDC_CLASS = "ACECCDCClass"


# A parameter code is either a standard code or a free-text code
ParameterCode = Union[StandardParameterCode, str]


@dataclass(frozen=True)
class ParameterMetadata:
    """Unit, category and description of a standard parameter code."""
    unit: Optional[str]
    category: str
    description: str


@lru_cache(maxsize=None)
def parameter_metadata_table() -> Dict[StandardParameterCode, ParameterMetadata]:
    """
    Lookup table of metadata for every standard parameter code.

    Built once on first use and shared read-only afterwards.
    """
    C = StandardParameterCode
    M = ParameterMetadata
    return {
        C.DEPTH: M("m", "General", "Depth"),
        C.ELEVATION: M("m", "General", "Elevation"),
        C.ANALYSIS_DRAINAGE_CONDITION: M(
            None, "General", "Drainage condition assumed for analysis: Drained or Undrained"),
        C.UNIT_WEIGHT_BULK: M("kN/m3", "Density", "Bulk unit weight"),
        C.ANGLE_FRICTION: M("deg", "Strength", "Effective angle of shearing resistance"),
        C.ANGLE_FRICTION_PEAK: M("deg", "Strength", "Peak effective angle of shearing resistance"),
        C.ANGLE_FRICTION_CRITICAL: M(
            "deg", "Strength", "Critical state effective angle of shearing resistance"),
        C.ANGLE_FRICTION_RESIDUAL: M("deg", "Strength", "Residual effective angle of shearing resistance"),
        C.ANGLE_DILATION: M("deg", "Strength", "Angle of dilation"),
        C.COHESION: M("kPa", "Strength", "Effective cohesion"),
        C.UNDRAINED_SHEAR_STRENGTH: M("kPa", "Strength", "Undrained shear strength"),
        C.UNDRAINED_SHEAR_STRENGTH_TRIAXIAL: M(
            "kPa", "Strength", "Undrained shear strength from triaxial tests"),
        C.UNIAXIAL_COMPRESSIVE_STRENGTH: M("MPa", "Stiffness", "Uniaxial Compressive Strength"),
        C.YOUNGS_MODULUS_DRAINED: M("MPa", "Stiffness", "Drained Young's Modulus"),
        C.YOUNGS_MODULUS_UNDRAINED: M("MPa", "Stiffness", "Undrained Young's Modulus"),
        C.YOUNGS_MODULUS_DRAINED_VERTICAL: M("MPa", "Stiffness", "Vertical drained Young's Modulus"),
        C.YOUNGS_MODULUS_UNDRAINED_VERTICAL: M("MPa", "Stiffness", "Vertical undrained Young's Modulus"),
        C.YOUNGS_MODULUS_DRAINED_HORIZONTAL: M("MPa", "Stiffness", "Horizontal drained Young's Modulus"),
        C.YOUNGS_MODULUS_UNDRAINED_HORIZONTAL: M(
            "MPa", "Stiffness", "Horizontal undrained Young's Modulus"),
        C.BULK_MODULUS: M("MPa", "Stiffness", "Bulk modulus"),
        C.SHEAR_MODULUS_DRAINED: M("MPa", "Stiffness", "Drained shear Modulus"),
        C.SHEAR_MODULUS_UNDRAINED: M("MPa", "Stiffness", "Undrained shear Modulus"),
        C.POISSONS_RATIO: M(None, "Stiffness", "Poisson's ratio"),
        C.COEFFICIENT_LATERAL_EARTH_PRESSURE_AT_REST: M(
            None, "Ret wall", "Coefficient of earth pressure at rest"),
        C.COEFFICIENT_LATERAL_EARTH_PRESSURE_ACTIVE: M(
            None, "Ret wall", "Coefficient of active earth pressure"),
        C.COEFFICIENT_LATERAL_EARTH_PRESSURE_PASSIVE: M(
            None, "Ret wall", "Coefficient of passive earth pressure"),
        C.COEFFICIENT_LATERAL_EARTH_PRESSURE_STAR: M(
            None, "Ret wall",
            "Coefficient of earth pressure for integral bridge abutments subject to strain ratcheting"),
        C.CBR: M("%", "Pavement", "California bearing ratio (CBR)"),
        C.SUBGRADE_SURFACE_MODULUS: M("MPa", "Pavement", "Subgrade surface modulus"),
        C.PERMEABILITY: M("m/s", "Permeability", "Permeability"),
        C.PERMEABILITY_HORIZONTAL: M("m/s", "Permeability", "Horizontal permeability"),
        C.PERMEABILITY_VERTICAL: M("m/s", "Permeability", "Vertical permeability"),
        C.ACEC_CLASS: M(None, "ACEC", "ACEC Aggressive chemical environment class"),
        C.ACEC_DS_CLASS: M(None, "ACEC", "ACEC Design sulphate class"),
        C.ACEC_CDC_CLASS: M(None, "ACEC", "ACEC Design chemical class"),
    }


def get_metadata(code: StandardParameterCode) -> ParameterMetadata:
    """Return the metadata record of a standard code."""
    return parameter_metadata_table()[code]


def parse_parameter_code(code: Union[ParameterCode, str]) -> ParameterCode:
    """
    Normalise a parameter code.

    Strings naming a standard code become the enum member; anything else is
    kept as a free-text code.

    Args:
        code: Standard code or code ID string

    Returns:
        StandardParameterCode member or the original free-text string
    """
    if isinstance(code, StandardParameterCode):
        return code
    try:
        return StandardParameterCode(code)
    except ValueError:
        return code


def code_id(code: ParameterCode) -> str:
    """Return the AGSi code ID string of a parameter code."""
    if isinstance(code, StandardParameterCode):
        return code.value
    return code


def is_standard_code(code: ParameterCode) -> bool:
    """Check whether a code belongs to the standard vocabulary."""
    return isinstance(code, StandardParameterCode)


def standard_unit(code: ParameterCode) -> Optional[str]:
    """Standard unit of a code, or None for free-text and unitless codes."""
    if isinstance(code, StandardParameterCode):
        return get_metadata(code).unit
    return None
