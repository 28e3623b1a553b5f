"""
VIVECAL - HTC tracker configuration resolver

Modules:
    schema - Calibration record, poses, device factory
    tokens - JSON token tree
    literals - Numeric field decoding
    context - Context frames for the token walk
    dispatch - Field name -> record slot mapping
    walker - Token tree walk
    geometry - Quaternion and rigid pose helpers
    pose_solver - IMU axis fit
    frames - Move geometry into IMU space
    sensor_units - Per-family IMU unit scaling
    config_loader - load_htc_config() entry point
    calinfo - Sensor geometry dump
"""

from .schema import (
    CalibrationRecord, DeviceFamily, ImuAxisHint, Pose,
    create_device, create_hmd, create_wm0, create_wm1,
    create_tr0, create_tr1, create_ww0
)
from .errors import ConfigError, ConfigParseError, TokenizeError
from .dispatch import ParserLimits
from .config_loader import ConfigStatus, load_htc_config, load_htc_config_file
from .calinfo import dump_calinfo

__all__ = [
    'CalibrationRecord',
    'DeviceFamily',
    'ImuAxisHint',
    'Pose',
    'create_device',
    'create_hmd',
    'create_wm0',
    'create_wm1',
    'create_tr0',
    'create_tr1',
    'create_ww0',
    'ConfigError',
    'ConfigParseError',
    'TokenizeError',
    'ParserLimits',
    'ConfigStatus',
    'load_htc_config',
    'load_htc_config_file',
    'dump_calinfo'
]
