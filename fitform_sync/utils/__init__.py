"""
Utilities Module
================

Joint frame encoding and logging helpers.
"""

from .joint_frame import (
    PROTOCOL_VERSION,
    SKELETON_JOINT_NAMES,
    encode_frame,
    encode_handshake,
    validate_frame,
)
from .logging_setup import configure_logging

__all__ = [
    "PROTOCOL_VERSION",
    "SKELETON_JOINT_NAMES",
    "encode_frame",
    "encode_handshake",
    "validate_frame",
    "configure_logging",
]
