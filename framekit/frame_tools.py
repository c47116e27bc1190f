# frame_tools.py
"""
Frame-match checks shared by every frame-aware type.

These are free functions working on anything exposing a `reference_frame` attribute, or on
reference frames themselves, so that points, vectors, orientations and poses all run the
same check without a common base class.
"""
from framekit.errors import ReferenceFrameMismatchError


def get_reference_frame(value):
    """Return `value` if it is a reference frame, or the frame a frame-aware value is expressed in."""
    frame = getattr(value, "reference_frame", None)
    if frame is None:
        from framekit.reference_frame import ReferenceFrame
        if isinstance(value, ReferenceFrame):
            return value
        raise TypeError(f"{type(value).__name__} is neither a reference frame nor a frame-aware value")
    return frame


def is_frame_aware(value) -> bool:
    return getattr(value, "reference_frame", None) is not None


def check_reference_frame_match(value_a, value_b) -> None:
    """
    Check that two frame-aware values (or frames) are expressed in the very same frame.

    Frames are compared by identity: two frames with the same name are still distinct.

    Raises:
        ReferenceFrameMismatchError: if the frames are not the same object.
    """
    frame_a = get_reference_frame(value_a)
    frame_b = get_reference_frame(value_b)
    if frame_a is not frame_b:
        raise ReferenceFrameMismatchError(frame_a, frame_b)


def check_if_frame_aware(reference, value) -> None:
    """Run check_reference_frame_match only when `value` carries a frame; plain coordinates pass."""
    if is_frame_aware(value):
        check_reference_frame_match(reference, value)


def check_all_match(reference, *values) -> None:
    for value in values:
        check_if_frame_aware(reference, value)


def frames_match(value_a, value_b) -> bool:
    return get_reference_frame(value_a) is get_reference_frame(value_b)
