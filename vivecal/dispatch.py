"""
Field Dispatcher

Maps array-valued config members onto the calibration record. Field names
resolve through two closed tables: context-free names are recognized at any
depth, IMU axis names only directly under an object keyed "imu". A
context-free match always wins.

Hard vs soft failures:
- a recognized field holding non-numeric literals raises ConfigParseError
- a recognized field with the wrong element count is skipped
- unknown names are ignored
"""

import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from .context import ContextFrame
from .errors import ConfigParseError
from .literals import MAX_LITERAL_LEN, parse_float_array, parse_float_array_in_place
from .schema import CalibrationRecord, ImuAxisHint, Pose
from .tokens import MAX_TOKENS, Token, TokenKind

logger = logging.getLogger(__name__)

MAX_DEPTH = 64


@dataclass
class ParserLimits:
    """Guards against pathological config documents."""
    max_tokens: int = MAX_TOKENS          # tokens produced by the tokenizer
    max_literal_len: int = MAX_LITERAL_LEN  # bytes per numeric literal
    max_depth: int = MAX_DEPTH            # object/array nesting


@dataclass
class ParseScratch:
    """Everything one parse writes to."""
    record: CalibrationRecord
    imu_hint: ImuAxisHint = field(default_factory=ImuAxisHint)
    limits: ParserLimits = field(default_factory=ParserLimits)


class FieldKind(Enum):
    SENSOR_POINTS = "modelPoints"
    SENSOR_NORMALS = "modelNormals"
    ACC_BIAS = "acc_bias"
    ACC_SCALE = "acc_scale"
    GYRO_BIAS = "gyro_bias"
    GYRO_SCALE = "gyro_scale"
    TRACKREF_FROM_IMU = "trackref_from_imu"
    TRACKREF_FROM_HEAD = "trackref_from_head"
    IMU_PLUS_X = "plus_x"
    IMU_PLUS_Z = "plus_z"
    IMU_POSITION = "position"


CONTEXT_FREE_FIELDS: Dict[str, FieldKind] = {
    kind.value: kind for kind in (
        FieldKind.SENSOR_POINTS, FieldKind.SENSOR_NORMALS,
        FieldKind.ACC_BIAS, FieldKind.ACC_SCALE,
        FieldKind.GYRO_BIAS, FieldKind.GYRO_SCALE,
        FieldKind.TRACKREF_FROM_IMU, FieldKind.TRACKREF_FROM_HEAD,
    )
}

IMU_FIELDS: Dict[str, FieldKind] = {
    kind.value: kind for kind in (
        FieldKind.IMU_PLUS_X, FieldKind.IMU_PLUS_Z, FieldKind.IMU_POSITION,
    )
}

IMU_CONTEXT_KEY = "imu"

# Record / hint attribute written by each field
_SENSOR_TARGETS = {
    FieldKind.SENSOR_POINTS: 'sensor_locations',
    FieldKind.SENSOR_NORMALS: 'sensor_normals',
}
_VECTOR_TARGETS = {
    FieldKind.ACC_BIAS: 'acc_bias',
    FieldKind.ACC_SCALE: 'acc_scale',
    FieldKind.GYRO_BIAS: 'gyro_bias',
    FieldKind.GYRO_SCALE: 'gyro_scale',
}
_POSE_TARGETS = {
    FieldKind.TRACKREF_FROM_IMU: 'imu_to_trackref',
    FieldKind.TRACKREF_FROM_HEAD: 'head_to_trackref',
}
_IMU_TARGETS = {
    FieldKind.IMU_PLUS_X: 'plus_x',
    FieldKind.IMU_PLUS_Z: 'plus_z',
    FieldKind.IMU_POSITION: 'position',
}

POSE_LITERAL_LEN = 7


def resolve_field(frame: ContextFrame) -> Optional[FieldKind]:
    """Look up the field a member's key names, honoring context."""
    if frame.key.kind != TokenKind.STRING:
        return None
    kind = CONTEXT_FREE_FIELDS.get(frame.key.text)
    if kind is None and frame.parent_key_is(IMU_CONTEXT_KEY):
        kind = IMU_FIELDS.get(frame.key.text)
    return kind


def dispatch_array(array: Token, frame: Optional[ContextFrame],
                   scratch: ParseScratch) -> Optional[FieldKind]:
    """
    Store an array-valued member if its key is recognized.

    Arrays nested inside a member's value (e.g. the per-sensor triples of
    modelPoints) are part of that member and are not dispatched on their own.

    Args:
        array: ARRAY token being visited
        frame: Context frame of the innermost enclosing member (None at root)
        scratch: Record and IMU hint being filled

    Returns:
        The FieldKind that was matched, or None
    """
    if frame is None or frame.value is not array:
        return None

    kind = resolve_field(frame)
    if kind is None:
        return None

    if kind in _SENSOR_TARGETS:
        _store_sensor_triples(scratch, kind, array)
    elif kind in _VECTOR_TARGETS:
        _store_vector(scratch, kind, array)
    elif kind in _POSE_TARGETS:
        _store_pose(scratch, kind, array)
    else:
        _store_imu_axis(scratch, kind, array)
    return kind


def parse_sensor_triples(array: Token, max_literal_len: int = MAX_LITERAL_LEN) -> np.ndarray:
    """
    Decode a list of [x, y, z] triples into a flat array.

    Args:
        array: ARRAY token whose elements are 3-element numeric arrays

    Returns:
        Flat float64 array of length 3 * array.size
    """
    values = np.empty(3 * array.size, dtype=float)
    for i, triple in enumerate(array.children):
        if triple.kind != TokenKind.ARRAY or triple.size != 3:
            raise ConfigParseError(f"Sensor entry {i} is not an [x, y, z] triple")
        parse_float_array_in_place(triple.children, values[3 * i:3 * i + 3], max_literal_len)
    return values


def _store_sensor_triples(scratch: ParseScratch, kind: FieldKind, array: Token) -> None:
    record = scratch.record
    values = parse_sensor_triples(array, scratch.limits.max_literal_len)
    setattr(record, _SENSOR_TARGETS[kind], values)
    record.sensor_count = array.size


def _store_vector(scratch: ParseScratch, kind: FieldKind, array: Token) -> None:
    if array.size != 3:
        logger.debug("Ignoring %s with %d values", kind.value, array.size)
        return
    values = parse_float_array(array.children, 3, scratch.limits.max_literal_len)
    setattr(scratch.record, _VECTOR_TARGETS[kind], values)


def _store_pose(scratch: ParseScratch, kind: FieldKind, array: Token) -> None:
    if array.size != POSE_LITERAL_LEN:
        logger.debug("Ignoring %s with %d values", kind.value, array.size)
        return
    values = parse_float_array(array.children, POSE_LITERAL_LEN, scratch.limits.max_literal_len)

    # Vendor layout is [qx, qy, qz, qw, px, py, pz]
    rot = np.array([values[3], values[0], values[1], values[2]])
    norm = np.linalg.norm(rot)
    if norm == 0.0:
        logger.warning("Ignoring %s with a zero quaternion", kind.value)
        return
    setattr(scratch.record, _POSE_TARGETS[kind], Pose(rot=rot / norm, pos=values[4:7].copy()))


def _store_imu_axis(scratch: ParseScratch, kind: FieldKind, array: Token) -> None:
    if array.size != 3:
        logger.debug("Ignoring imu.%s with %d values", kind.value, array.size)
        return
    parse_float_array_in_place(array.children, getattr(scratch.imu_hint, _IMU_TARGETS[kind]),
                               scratch.limits.max_literal_len)
