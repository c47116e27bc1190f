from enum import Enum


class Axis3D(Enum):
    X = 0
    Y = 1
    Z = 2


# the two matrix indices (p, q) spanning the plane normal to each axis
_AXIS_TO_PLANE = {
    Axis3D.X: (1, 2),
    Axis3D.Y: (0, 2),
    Axis3D.Z: (0, 1),
}
