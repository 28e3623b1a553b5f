"""
Frame Transformer

Re-expresses sensor geometry and the head pose in IMU space, using the
inverse of the IMU -> tracking-reference pose.
"""

from .geometry import apply_pose_to_points, compose_poses, invert_pose, rotate_vectors
from .schema import CalibrationRecord, Pose


def normalize_to_imu_frame(record: CalibrationRecord) -> Pose:
    """
    Move sensor locations, sensor normals and the head pose into IMU space.

    Locations get the full rigid transform, normals only the rotation.
    Missing sensor arrays are skipped. All updates are in place.

    Args:
        record: Record whose imu_to_trackref pose is already final

    Returns:
        The trackref -> IMU pose that was applied
    """
    trackref_to_imu = invert_pose(record.imu_to_trackref)

    if record.sensor_locations is not None and record.sensor_locations.size:
        moved = apply_pose_to_points(trackref_to_imu, record.sensor_locations)
        record.sensor_locations[:] = moved.ravel()

    if record.sensor_normals is not None and record.sensor_normals.size:
        turned = rotate_vectors(trackref_to_imu.rot, record.sensor_normals)
        record.sensor_normals[:] = turned.ravel()

    record.head_to_imu = compose_poses(trackref_to_imu, record.head_to_trackref)
    return trackref_to_imu
