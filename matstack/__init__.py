"""
matstack: a stack of cumulative 4x4 transformation matrices for traversing scene graphs,
with copy-on-branch, bulk unwind and retroactive rebase of earlier levels.
"""

__version__ = version = "0.1.0"

import logging

# exposing the public API of the package
from matstack.mat4 import Mat4, SINGULAR_TOLERANCE
from matstack.stack import MatStack
from matstack.errors import (
    MatStackError,
    UnderflowError,
    OutOfBoundsError,
    SingularMatrixError,
    NoInverseError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Mat4",
    "MatStack",
    "SINGULAR_TOLERANCE",
    "MatStackError",
    "UnderflowError",
    "OutOfBoundsError",
    "SingularMatrixError",
    "NoInverseError",
]
