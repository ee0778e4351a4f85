# Exp_Curves/curves/quat_math.py
"""
Quaternion log / exp maps - NUMPY VECTORIZED, worker-safe.

Rotation channels are fitted in the tangent space of the unit quaternions:
each sample q is mapped to the 3-vector log(q) = axis * half_angle, fitted like
any other 3D channel, then mapped back with exp.

All quaternions here are in [w, x, y, z] format.
glTF buffers store [x, y, z, w]; use the *_xyzw helpers at that boundary.
"""

import numpy as np

# Below this vector-part length the rotation is treated as identity-like
_SMALL_ANGLE = 1e-12


def quat_identity() -> np.ndarray:
    """Return identity quaternion [w, x, y, z]."""
    return np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)


def normalize_quaternions(quats: np.ndarray) -> np.ndarray:
    """
    Normalize quaternions.

    Args:
        quats: (..., 4) array of quaternions

    Returns:
        Normalized quaternions, same shape
    """
    quats = np.asarray(quats, dtype=np.float64)
    norms = np.linalg.norm(quats, axis=-1, keepdims=True)
    norms = np.maximum(norms, 1e-10)  # Avoid division by zero
    return quats / norms


def quat_log(quats: np.ndarray) -> np.ndarray:
    """
    Logarithm of unit quaternions.

    Args:
        quats: (..., 4) array [w, x, y, z], assumed unit length

    Returns:
        (..., 3) tangent vectors axis * half_angle. exp(log(q)) == q for every
        unit q except -identity, which maps to 0 (the same rotation).
    """
    quats = np.asarray(quats, dtype=np.float64)
    w = quats[..., 0]
    v = quats[..., 1:4]

    s = np.linalg.norm(v, axis=-1)
    theta = np.arctan2(s, w)

    safe_s = np.where(s > _SMALL_ANGLE, s, 1.0)
    factor = np.where(s > _SMALL_ANGLE, theta / safe_s, 1.0)
    return v * factor[..., np.newaxis]


def quat_exp(vectors: np.ndarray) -> np.ndarray:
    """
    Exponential map from tangent vectors to unit quaternions.

    Args:
        vectors: (..., 3) array, axis * half_angle

    Returns:
        (..., 4) quaternions [w, x, y, z]
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    theta = np.linalg.norm(vectors, axis=-1)

    safe_theta = np.where(theta > _SMALL_ANGLE, theta, 1.0)
    factor = np.where(theta > _SMALL_ANGLE, np.sin(theta) / safe_theta, 1.0)

    w = np.cos(theta)[..., np.newaxis]
    return np.concatenate([w, vectors * factor[..., np.newaxis]], axis=-1)


# =============================================================================
# glTF LAYOUT ([x, y, z, w])
# =============================================================================

def xyzw_to_wxyz(quats: np.ndarray) -> np.ndarray:
    quats = np.asarray(quats, dtype=np.float64)
    return np.concatenate([quats[..., 3:4], quats[..., 0:3]], axis=-1)


def wxyz_to_xyzw(quats: np.ndarray) -> np.ndarray:
    quats = np.asarray(quats, dtype=np.float64)
    return np.concatenate([quats[..., 1:4], quats[..., 0:1]], axis=-1)


def quat_log_xyzw(quats: np.ndarray) -> np.ndarray:
    """quat_log for (..., 4) arrays stored as [x, y, z, w]."""
    return quat_log(xyzw_to_wxyz(quats))


def quat_exp_xyzw(vectors: np.ndarray) -> np.ndarray:
    """quat_exp returning (..., 4) arrays stored as [x, y, z, w]."""
    return wxyz_to_xyzw(quat_exp(vectors))
