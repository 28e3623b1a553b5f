"""
HTC Config Loader

Entry point that turns a raw tracker configuration blob into a resolved
CalibrationRecord:

    tokenize -> walk/dispatch -> solve IMU pose -> move geometry to IMU
    space -> apply device unit scaling

All work happens on a staged copy of the record, which is committed only
when every stage succeeded. Failures are reported as a ConfigStatus.
"""

import copy
import logging
from dataclasses import fields
from enum import IntEnum
from pathlib import Path
from typing import Optional, Union

from .dispatch import ParserLimits, ParseScratch
from .errors import ConfigParseError, TokenizeError
from .frames import normalize_to_imu_frame
from .pose_solver import solve_imu_pose
from .schema import CalibrationRecord
from .sensor_units import apply_device_scaling
from .tokens import Buffer, TokenKind, tokenize
from .walker import walk_tokens

logger = logging.getLogger(__name__)


class ConfigStatus(IntEnum):
    OK = 0
    EMPTY_INPUT = -1
    NOT_AN_OBJECT = -2
    TOKENIZE_FAILED = -3
    PARSE_ERROR = -4


def _check_sensor_counts(record: CalibrationRecord) -> None:
    expected = 3 * record.sensor_count
    for name in ('sensor_locations', 'sensor_normals'):
        values = getattr(record, name)
        if values is not None and values.size != expected:
            raise ConfigParseError(
                f"{name} holds {values.size // 3} sensors, expected {record.sensor_count}")


# Filled from the config and then transformed or rescaled in place
SENSOR_FIELDS = ('sensor_locations', 'sensor_normals')
IMU_VECTOR_FIELDS = ('acc_bias', 'acc_scale', 'gyro_bias', 'gyro_scale')


def _stage(record: CalibrationRecord) -> CalibrationRecord:
    """Copy of `record` with the config-filled arrays cleared."""
    staged = copy.deepcopy(record)
    for name in SENSOR_FIELDS + IMU_VECTOR_FIELDS:
        setattr(staged, name, None)
    staged.sensor_count = 0
    return staged


def _commit(staged: CalibrationRecord, record: CalibrationRecord) -> None:
    """
    Copy a finished parse back into `record`.

    Sensor geometry is replaced as a group when the config carried either
    array; each IMU vector the config did not carry keeps its earlier,
    already resolved value.
    """
    keep = {name for name in IMU_VECTOR_FIELDS if getattr(staged, name) is None}
    if all(getattr(staged, name) is None for name in SENSOR_FIELDS):
        keep.update(SENSOR_FIELDS + ('sensor_count',))

    for f in fields(CalibrationRecord):
        if f.name not in keep:
            setattr(record, f.name, getattr(staged, f.name))


def load_htc_config(record: CalibrationRecord, buffer: Buffer,
                    limits: Optional[ParserLimits] = None) -> ConfigStatus:
    """
    Load an HTC tracker configuration into `record`.

    Args:
        record: Device record to update; untouched unless the status is OK.
            Loading into a record that already holds a config never
            re-transforms or re-scales the values resolved earlier.
        buffer: Raw JSON config (bytes, bytearray, memoryview or str)
        limits: Token, literal and depth guards (defaults to ParserLimits())

    Returns:
        ConfigStatus.OK on success, a negative status otherwise
    """
    limits = limits or ParserLimits()

    if len(buffer) == 0:
        return ConfigStatus.EMPTY_INPUT

    try:
        root = tokenize(buffer, limits.max_tokens)
    except TokenizeError as e:
        logger.info("Failed to parse JSON in %s configuration: %s", record.codename, e)
        return ConfigStatus.TOKENIZE_FAILED

    if root.kind != TokenKind.OBJECT:
        logger.info("Object expected in %s configuration", record.codename)
        return ConfigStatus.NOT_AN_OBJECT

    staged = _stage(record)
    scratch = ParseScratch(record=staged, limits=limits)
    try:
        walk_tokens(root, scratch, budget=root.count())
        _check_sensor_counts(staged)
    except ConfigParseError as e:
        logger.error("Parse error in %s configuration: %s", record.codename, e)
        return ConfigStatus.PARSE_ERROR

    solve_imu_pose(staged.imu_to_trackref, scratch.imu_hint)
    normalize_to_imu_frame(staged)
    apply_device_scaling(staged)

    _commit(staged, record)
    return ConfigStatus.OK


def load_htc_config_file(record: CalibrationRecord, path: Union[str, Path],
                         limits: Optional[ParserLimits] = None) -> ConfigStatus:
    """Read a config file as bytes and load it with load_htc_config()."""
    with open(path, 'rb') as f:
        data = f.read()
    return load_htc_config(record, data, limits)
