# errors.py


class FramekitError(Exception):
    """Base class for every error raised by framekit."""


class ReferenceFrameMismatchError(FramekitError, ValueError):
    """
    Raised when two frame-aware operands are not expressed in the same reference frame.

    Attributes:
        frame_a: the frame of the value the operation was called on.
        frame_b: the frame of the offending argument.
    """

    def __init__(self, frame_a, frame_b, message: str = None):
        self.frame_a = frame_a
        self.frame_b = frame_b
        if message is None:
            message = f"Frame mismatch: {_frame_label(frame_a)} != {_frame_label(frame_b)}"
        super().__init__(message)


class CrossRootTransformError(ReferenceFrameMismatchError):
    """Raised when a transform is requested between frames of two different trees."""

    def __init__(self, frame_a, frame_b):
        super().__init__(
            frame_a,
            frame_b,
            f"Frames do not share the same root: {_frame_label(frame_a)} (root {_root_label(frame_a)}) "
            f"and {_frame_label(frame_b)} (root {_root_label(frame_b)})",
        )


class FrameRegistryError(FramekitError):
    """Raised when a frame tree registration invariant would be violated."""


class RemovedFrameError(FrameRegistryError):
    """Raised when a removed frame is used for a transform query or an update."""


class NotAnXYTransformError(FramekitError, ValueError):
    """Raised when a 2D value is transformed by a rotation that is not a pure yaw."""


def _frame_label(frame) -> str:
    name = getattr(frame, "name", None)
    if name is None:
        return repr(frame)
    return f"'{name}'"


def _root_label(frame) -> str:
    root = getattr(frame, "root", None)
    if root is None:
        return "?"
    return _frame_label(root)
