"""
Joint Frame Encoding
====================

Validation and datagram encoding for per-frame skeleton joint positions.

A joint frame maps joint names from the default 3D body skeleton to a
3-element world position. Frames are encoded as a flat JSON object::

    {"hips_joint": [0.0, 0.98, -1.2], "left_hand_joint": [...], ...}
"""

import json
import math
from typing import Dict, List, Mapping, Sequence, Union

import numpy as np

from ..errors import EncodeError

# Telemetry protocol version announced in the handshake datagram
PROTOCOL_VERSION = 1

Position = Union[Sequence[float], np.ndarray]
JointFrame = Mapping[str, Position]


def _side_joints(side: str) -> List[str]:
    """Leg, arm and hand joints for one side of the body."""
    joints = [
        f"{side}_upLeg_joint",
        f"{side}_leg_joint",
        f"{side}_foot_joint",
        f"{side}_toes_joint",
        f"{side}_toesEnd_joint",
        f"{side}_shoulder_1_joint",
        f"{side}_arm_joint",
        f"{side}_forearm_joint",
        f"{side}_hand_joint",
    ]
    for finger in ("Index", "Mid", "Pinky", "Ring"):
        joints.append(f"{side}_hand{finger}Start_joint")
        joints.extend(f"{side}_hand{finger}_{i}_joint" for i in (1, 2, 3))
        joints.append(f"{side}_hand{finger}End_joint")
    joints.extend([
        f"{side}_handThumbStart_joint",
        f"{side}_handThumb_1_joint",
        f"{side}_handThumb_2_joint",
        f"{side}_handThumbEnd_joint",
    ])
    joints.extend([
        f"{side}_eye_joint",
        f"{side}_eyeLowerLid_joint",
        f"{side}_eyeUpperLid_joint",
        f"{side}_eyeball_joint",
    ])
    return joints


SKELETON_JOINT_NAMES = frozenset(
    ["root", "hips_joint", "head_joint", "jaw_joint", "chin_joint", "nose_joint"]
    + [f"spine_{i}_joint" for i in range(1, 8)]
    + [f"neck_{i}_joint" for i in range(1, 5)]
    + _side_joints("left")
    + _side_joints("right")
)


def _position_to_list(joint: str, position: Position) -> List[float]:
    """Convert one position to a list of three finite floats."""
    if isinstance(position, np.ndarray):
        values = position.astype(float).ravel().tolist()
    else:
        try:
            values = [float(v) for v in position]
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Position for {joint} is not numeric: {e}") from e

    if len(values) != 3:
        raise EncodeError(f"Position for {joint} has {len(values)} components, expected 3")
    if not all(math.isfinite(v) for v in values):
        raise EncodeError(f"Position for {joint} contains a non-finite value")
    return values


def validate_frame(frame: JointFrame) -> Dict[str, List[float]]:
    """
    Check a joint frame and normalize its positions.

    Args:
        frame: Mapping of joint name to 3D position

    Returns:
        Dict of joint name to ``[x, y, z]`` float lists

    Raises:
        EncodeError: On an unknown joint name or a malformed position
    """
    if not isinstance(frame, Mapping):
        raise EncodeError(f"Joint frame must be a mapping, got {type(frame).__name__}")

    formatted: Dict[str, List[float]] = {}
    for joint, position in frame.items():
        if joint not in SKELETON_JOINT_NAMES:
            raise EncodeError(f"Unknown skeleton joint: {joint!r}")
        formatted[joint] = _position_to_list(joint, position)
    return formatted


def encode_frame(frame: JointFrame) -> bytes:
    """Encode a joint frame as one UTF-8 JSON datagram."""
    formatted = validate_frame(frame)
    return json.dumps(formatted, separators=(",", ":")).encode("utf-8")


def encode_handshake(session_id: int) -> bytes:
    """Handshake datagram binding the telemetry stream to a session."""
    return f"{int(session_id)} {PROTOCOL_VERSION}".encode("utf-8")
