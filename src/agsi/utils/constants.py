"""
Application constants and configuration values.
"""

from pathlib import Path

# Application information
APP_NAME = "agsi-python"

# File paths
APP_DIR = Path(__file__).parent.parent
RESOURCES_DIR = APP_DIR / "resources"
SCHEMA_DIR = RESOURCES_DIR / "schema"

# Schema files
DOCUMENT_JSON_SCHEMA_PATH = SCHEMA_DIR / "agsi_document.schema.json"
DOCUMENT_AVRO_SCHEMA_PATH = SCHEMA_DIR / "agsi_document.avsc"

# AGSi schema versions (major, minor, patch)
CURRENT_SCHEMA_VERSION = (1, 0, 1)
SUPPORTED_SCHEMA_VERSIONS = [(1, 0, 0), (1, 0, 1)]

# Text format settings
JSON_INDENT = 2
GZIP_SUFFIX = ".gz"

# Wire format
WIRE_PACKAGE = "agsi.wire"
WIRE_SCHEMA_FILE_NAME = "agsi_wire.proto"

# String length bounds
MAX_ID_LENGTH = 255
MAX_NAME_LENGTH = 500
MAX_TEXT_LENGTH = 100000

# Surface mesh payload heuristics (bytes per declared vertex or face)
MIN_BYTES_PER_MESH_ELEMENT = 6
MAX_BYTES_PER_MESH_ELEMENT = 512
MESH_HEADER_ALLOWANCE = 4096

# Logging settings
LOG_MAX_SIZE = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Calculation tolerances
FLOATING_POINT_TOLERANCE = 1e-10

# Physically plausible ranges for standard parameter codes, in standard units
PARAMETER_RANGES = {
    'Depth': {'min': 0.0, 'max': 12000.0, 'units': 'm'},
    'Elevation': {'min': -12000.0, 'max': 9000.0, 'units': 'm'},
    'UnitWeightBulk': {'min': 0.0, 'max': 35.0, 'units': 'kN/m3'},
    'AngleFriction': {'min': 0.0, 'max': 90.0, 'units': 'deg'},
    'AngleFrictionPeak': {'min': 0.0, 'max': 90.0, 'units': 'deg'},
    'AngleFrictionCritical': {'min': 0.0, 'max': 90.0, 'units': 'deg'},
    'AngleFrictionResidual': {'min': 0.0, 'max': 90.0, 'units': 'deg'},
    'AngleDilation': {'min': 0.0, 'max': 90.0, 'units': 'deg'},
    'Cohesion': {'min': 0.0, 'max': 5000.0, 'units': 'kPa'},
    'UndrainedShearStrength': {'min': 0.0, 'max': 10000.0, 'units': 'kPa'},
    'UndrainedShearStrengthTriaxial': {'min': 0.0, 'max': 10000.0, 'units': 'kPa'},
    'UniaxialCompressiveStrength': {'min': 0.0, 'max': 500.0, 'units': 'MPa'},
    'YoungsModulusDrained': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'YoungsModulusUndrained': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'YoungsModulusDrainedVertical': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'YoungsModulusUndrainedVertical': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'YoungsModulusDrainedHorizontal': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'YoungsModulusUndrainedHorizontal': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'BulkModulus': {'min': 0.0, 'max': 200000.0, 'units': 'MPa'},
    'ShearModulusDrained': {'min': 0.0, 'max': 100000.0, 'units': 'MPa'},
    'ShearModulusUndrained': {'min': 0.0, 'max': 100000.0, 'units': 'MPa'},
    'PoissonsRatio': {'min': 0.0, 'max': 0.5, 'units': '-'},
    'CoefficientLateralEarthPressureAtRest': {'min': 0.0, 'max': 5.0, 'units': '-'},
    'CoefficientLateralEarthPressureActive': {'min': 0.0, 'max': 1.0, 'units': '-'},
    'CoefficientLateralEarthPressurePassive': {'min': 1.0, 'max': 50.0, 'units': '-'},
    'CoefficientLateralEarthPressureStar': {'min': 0.0, 'max': 10.0, 'units': '-'},
    'CBR': {'min': 0.0, 'max': 100.0, 'units': '%'},
    'SubgradeSurfaceModulus': {'min': 0.0, 'max': 5000.0, 'units': 'MPa'},
    'Permeability': {'min': 0.0, 'max': 1.0, 'units': 'm/s'},
    'PermeabilityHorizontal': {'min': 0.0, 'max': 1.0, 'units': 'm/s'},
    'PermeabilityVertical': {'min': 0.0, 'max': 1.0, 'units': 'm/s'},
}
