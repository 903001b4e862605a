"""Errors raised while decoding and matching face descriptors."""

from __future__ import annotations

from typing import Optional

from attendance.exceptions import AttendanceError


class InvalidDescriptorFormat(AttendanceError, ValueError):
    """The supplied descriptor is not a usable numeric vector."""

    status_code = 400
    code = "invalid_descriptor_format"
    default_message = "Invalid face descriptor format."


class DimensionMismatch(ValueError):
    """Two descriptors of different length were compared."""

    def __init__(self, left: int, right: int) -> None:
        self.left = left
        self.right = right
        super().__init__(f"Descriptor dimensions differ: {left} != {right}")


class NoEnrolledFaces(AttendanceError):
    status_code = 404
    code = "no_enrolled_faces"
    default_message = "No employees with registered face data were found."


class NoFaceMatch(AttendanceError):
    """No enrolled descriptor is close enough to the probe.

    Only the minimum distance is exposed; the identity of the closest employee
    is never part of the error.
    """

    status_code = 401
    code = "no_face_match"
    default_message = "Face not recognised. Please try again or contact an administrator."

    def __init__(self, distance: Optional[float], message: Optional[str] = None) -> None:
        self.distance = distance
        super().__init__(message, details={"distance": distance})

    def as_payload(self) -> dict:
        return {"success": False, "error": self.message, "details": {"distance": self.distance}}


__all__ = [
    "DimensionMismatch",
    "InvalidDescriptorFormat",
    "NoEnrolledFaces",
    "NoFaceMatch",
]
