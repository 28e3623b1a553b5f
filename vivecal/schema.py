"""
VIVECAL Data Schema

Defines the calibration record filled in from an HTC tracker configuration
blob, the rigid pose type shared by every stage, and the device families
that select unit conversion constants.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import numpy as np


# Device defaults (before any configuration has been applied)
DEFAULT_TIMEBASE_HZ = 48000000
VIVE_DEFAULT_IMU_HZ = 250.0
HMD_IMU_HZ = 1000.0


# =============================================================================
# ENUMS
# =============================================================================

class DeviceFamily(str, Enum):
    """Device family, resolved once from the device codename."""
    HMD = "hmd"                # Headset ("HMD")
    CONTROLLER = "controller"  # Wand controllers ("WM0", "WM1", ...)
    TRACKER = "tracker"        # Trackers, wired watchman, anything else

    @classmethod
    def from_codename(cls, codename: str) -> 'DeviceFamily':
        if codename == "HMD":
            return cls.HMD
        if codename.startswith("WM"):
            return cls.CONTROLLER
        return cls.TRACKER


# =============================================================================
# POSES
# =============================================================================

@dataclass
class Pose:
    """
    Rigid pose: unit quaternion rotation plus translation.

    The quaternion is stored scalar-first, [w, x, y, z].
    """
    rot: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0]))
    pos: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @classmethod
    def identity(cls) -> 'Pose':
        return cls()

    def copy(self) -> 'Pose':
        return Pose(rot=np.array(self.rot, dtype=float), pos=np.array(self.pos, dtype=float))

    def to_dict(self) -> Dict[str, list]:
        return {'rot': [float(v) for v in self.rot], 'pos': [float(v) for v in self.pos]}


@dataclass
class ImuAxisHint:
    """
    Measured IMU axes, collected from the "imu" object of a config.

    Only lives for the duration of one parse.
    """
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    plus_x: np.ndarray = field(default_factory=lambda: np.zeros(3))
    plus_z: np.ndarray = field(default_factory=lambda: np.zeros(3))


# =============================================================================
# CALIBRATION RECORD
# =============================================================================

@dataclass
class CalibrationRecord:
    """
    Fully resolved calibration of one tracked device.

    Sensor arrays are flat [x0, y0, z0, x1, ...] float arrays holding
    3 * sensor_count values. Optional IMU vectors stay None until a
    configuration provides them.
    """
    codename: str
    driver_name: str = ""
    timebase_hz: int = DEFAULT_TIMEBASE_HZ
    imu_sample_rate_hz: float = VIVE_DEFAULT_IMU_HZ

    sensor_count: int = 0
    sensor_locations: Optional[np.ndarray] = None
    sensor_normals: Optional[np.ndarray] = None

    acc_bias: Optional[np.ndarray] = None
    acc_scale: Optional[np.ndarray] = None
    gyro_bias: Optional[np.ndarray] = None
    gyro_scale: Optional[np.ndarray] = None

    imu_to_trackref: Pose = field(default_factory=Pose.identity)
    head_to_trackref: Pose = field(default_factory=Pose.identity)
    head_to_imu: Pose = field(default_factory=Pose.identity)

    @property
    def family(self) -> DeviceFamily:
        return DeviceFamily.from_codename(self.codename)

    def sensor_points(self) -> Optional[np.ndarray]:
        """Sensor locations as an (N, 3) view, or None."""
        if self.sensor_locations is None:
            return None
        return self.sensor_locations.reshape(-1, 3)

    def to_dict(self) -> Dict[str, Any]:
        def vec(v):
            return None if v is None else [float(x) for x in v]

        return {
            'codename': self.codename,
            'driver_name': self.driver_name,
            'family': self.family.value,
            'timebase_hz': self.timebase_hz,
            'imu_sample_rate_hz': float(self.imu_sample_rate_hz),
            'sensor_count': self.sensor_count,
            'sensor_locations': vec(self.sensor_locations),
            'sensor_normals': vec(self.sensor_normals),
            'acc_bias': vec(self.acc_bias),
            'acc_scale': vec(self.acc_scale),
            'gyro_bias': vec(self.gyro_bias),
            'gyro_scale': vec(self.gyro_scale),
            'imu_to_trackref': self.imu_to_trackref.to_dict(),
            'head_to_trackref': self.head_to_trackref.to_dict(),
            'head_to_imu': self.head_to_imu.to_dict(),
        }


# =============================================================================
# DEVICE FACTORY
# =============================================================================

def create_device(driver_name: str, codename: str) -> CalibrationRecord:
    """
    Create a device record with default timing and identity poses.

    Args:
        driver_name: Name of the driver that owns the device
        codename: Short device class tag ("HMD", "WM0", "TR0", "WW0", ...)

    Returns:
        A CalibrationRecord ready to be filled by load_htc_config()
    """
    return CalibrationRecord(codename=codename, driver_name=driver_name)


def create_hmd(driver_name: str) -> CalibrationRecord:
    return create_device(driver_name, "HMD")


def create_wm0(driver_name: str) -> CalibrationRecord:
    return create_device(driver_name, "WM0")


def create_wm1(driver_name: str) -> CalibrationRecord:
    return create_device(driver_name, "WM1")


def create_tr0(driver_name: str) -> CalibrationRecord:
    return create_device(driver_name, "TR0")


def create_tr1(driver_name: str) -> CalibrationRecord:
    return create_device(driver_name, "TR1")


def create_ww0(driver_name: str) -> CalibrationRecord:
    return create_device(driver_name, "WW0")
