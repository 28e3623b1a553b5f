"""
Device IMU Units and Scaling

Defines the per-family conversions applied to the raw IMU calibration
constants found in an HTC config blob, and the IMU sample rate each family
reports at.

UNITS POLICY:
- acc_scale is multiplied by the family's accelerometer factor
  (1/8192 on the HMD, 2/8192 elsewhere)
- acc_bias is multiplied by 1000 for every family
- gyro_scale becomes rad/s per LSB for a 16-bit reading over the family's
  deg/s range
- gyro_bias is never rescaled
"""

import logging
import math
from typing import Dict, Any

import numpy as np

from .schema import CalibrationRecord, DeviceFamily, HMD_IMU_HZ

logger = logging.getLogger(__name__)

# ===== Device IMU Specifications =====

GYRO_FULL_SCALE_LSB = 1 << 15

HMD_IMU_SPEC = {
    'devices': 'HMD',
    'accel_scale_factor': 1 / 8192.0,
    'accel_bias_factor': 1000.0,
    'gyro_range_dps': 500,
    'imu_hz': HMD_IMU_HZ,
}

CONTROLLER_IMU_SPEC = {
    'devices': 'WM0, WM1',
    'accel_scale_factor': 2 / 8192.0,
    'accel_bias_factor': 1000.0,
    'gyro_range_dps': 2000,
    'imu_hz': None,  # keeps the device default
}

# Verified on the wired watchman; trackers assumed to match.
# MPU6500: 1g accelerometer, .5g units when read over USB.
# Gyro range can be 250, 500, 1000 or 2000 deg/s over 16 bits.
TRACKER_IMU_SPEC = {
    'devices': 'TR0, TR1, WW0, others',
    'accel_scale_factor': 2 / 8192.0,
    'accel_bias_factor': 1000.0,
    'gyro_range_dps': 2000,
    'imu_hz': None,
}

DEVICE_IMU_SPECS: Dict[DeviceFamily, Dict[str, Any]] = {
    DeviceFamily.HMD: HMD_IMU_SPEC,
    DeviceFamily.CONTROLLER: CONTROLLER_IMU_SPEC,
    DeviceFamily.TRACKER: TRACKER_IMU_SPEC,
}


# ===== Unit Conversion Functions =====

def gyro_scale_factor(range_dps: float) -> float:
    """
    rad/s per LSB for a 16-bit gyro reading.

    Args:
        range_dps: Full-scale range in deg/s

    Returns:
        Multiplier taking raw LSB to rad/s
    """
    return range_dps / GYRO_FULL_SCALE_LSB * math.pi / 180.0


def apply_device_scaling(record: CalibrationRecord) -> DeviceFamily:
    """
    Convert raw IMU bias/scale vectors to physical units for the record's family.

    Vectors missing from the config are left as None. The IMU sample rate is
    only overwritten for families that define one.

    Args:
        record: Record updated in place

    Returns:
        The DeviceFamily that selected the constants
    """
    family = record.family
    spec = DEVICE_IMU_SPECS[family]

    if record.acc_scale is not None:
        record.acc_scale = record.acc_scale * spec['accel_scale_factor']
    if record.acc_bias is not None:
        record.acc_bias = record.acc_bias * spec['accel_bias_factor']
    if record.gyro_scale is not None:
        record.gyro_scale = record.gyro_scale * gyro_scale_factor(spec['gyro_range_dps'])
    if spec['imu_hz'] is not None:
        record.imu_sample_rate_hz = spec['imu_hz']

    logger.debug("Applied %s IMU scaling to %s", family.value, record.codename)
    return family


def get_device_unit_metadata(family: DeviceFamily) -> Dict[str, Any]:
    """Conversion constants for a family, for summaries and diagnostics."""
    spec = DEVICE_IMU_SPECS[family]
    return {
        'family': family.value,
        'devices': spec['devices'],
        'accel_scale_factor': spec['accel_scale_factor'],
        'accel_bias_factor': spec['accel_bias_factor'],
        'gyro_range_dps': spec['gyro_range_dps'],
        'gyro_scale_factor': gyro_scale_factor(spec['gyro_range_dps']),
        'imu_hz': spec['imu_hz'],
    }


__all__ = [
    'DEVICE_IMU_SPECS',
    'HMD_IMU_SPEC',
    'CONTROLLER_IMU_SPEC',
    'TRACKER_IMU_SPEC',
    'gyro_scale_factor',
    'apply_device_scaling',
    'get_device_unit_metadata',
]
