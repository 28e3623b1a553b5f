"""
IMU Pose Solver

Recovers the IMU -> tracking-reference rotation from the measured IMU axes
in a config's "imu" object. The canonical axes e_x and e_z are paired with
the measured plus_x and plus_z vectors and the best-fit rotation is found
with a 2-point Kabsch fit (scipy's Rotation.align_vectors), using the
measured vectors unnormalized.
"""

import logging

import numpy as np
from scipy.spatial.transform import Rotation

from .geometry import from_rotation
from .schema import ImuAxisHint, Pose

logger = logging.getLogger(__name__)

CANONICAL_AXES = np.array([
    [1.0, 0.0, 0.0],  # paired with plus_x
    [0.0, 0.0, 1.0],  # paired with plus_z
])


def solve_imu_pose(pose: Pose, hint: ImuAxisHint) -> bool:
    """
    Fit `pose` to the measured IMU axes.

    Args:
        pose: Pose updated in place (rotation and position)
        hint: Measured IMU position and axis directions

    Returns:
        True if the pose was solved, False if either axis is all zeros
        (the pose is left untouched in that case)
    """
    if not np.any(hint.plus_x) or not np.any(hint.plus_z):
        logger.debug("IMU axes not specified, keeping IMU pose %s", pose.rot)
        return False

    measured = np.vstack([hint.plus_x, hint.plus_z])
    rotation, rssd = Rotation.align_vectors(measured, CANONICAL_AXES)
    logger.debug("IMU axis fit residual %.6f", rssd)

    pose.rot = from_rotation(rotation)
    pose.pos = np.array(hint.position, dtype=float)
    return True
