"""
Pose Geometry

Quaternion and rigid-pose helpers shared by the pose solver and the frame
transformer. Rotations go through scipy's Rotation; quaternions are kept
scalar-first ([w, x, y, z]) everywhere else in the package.

Conventions:
- compose_poses(a, b) applies b first, then a
- apply_pose_to_points(p, pts) = R(p) @ pt + pos(p)
"""

import numpy as np
from scipy.spatial.transform import Rotation

from .schema import Pose


def to_rotation(q: np.ndarray) -> Rotation:
    """Scalar-first quaternion -> scipy Rotation."""
    w, x, y, z = q
    return Rotation.from_quat([x, y, z, w])


def from_rotation(r: Rotation) -> np.ndarray:
    """
    scipy Rotation -> scalar-first quaternion.

    The sign is chosen so that w >= 0; q and -q describe the same rotation.
    """
    x, y, z, w = r.as_quat()
    q = np.array([w, x, y, z])
    if q[0] < 0:
        q = -q
    return q


def invert_pose(pose: Pose) -> Pose:
    """Inverse rigid transform: R^T, -R^T @ pos."""
    inv = to_rotation(pose.rot).inv()
    return Pose(rot=from_rotation(inv), pos=-inv.apply(pose.pos))


def compose_poses(a: Pose, b: Pose) -> Pose:
    """Pose equivalent to applying `b` and then `a`."""
    ra = to_rotation(a.rot)
    rot = ra * to_rotation(b.rot)
    return Pose(rot=from_rotation(rot), pos=ra.apply(b.pos) + a.pos)


def apply_pose_to_points(pose: Pose, points: np.ndarray) -> np.ndarray:
    """
    Transform points by a rigid pose.

    Args:
        pose: Pose to apply
        points: (N, 3) array of points

    Returns:
        (N, 3) array of transformed points
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    return to_rotation(pose.rot).apply(points) + pose.pos


def rotate_vectors(q: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Rotate (N, 3) direction vectors by a quaternion (no translation)."""
    vectors = np.asarray(vectors, dtype=float).reshape(-1, 3)
    return to_rotation(q).apply(vectors)
