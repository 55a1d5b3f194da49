# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
qrfactor
========

Dense QR factorization engine for least-squares solving and
pseudo-inverse computation, with a family of interchangeable
orthogonalization algorithms.

Public API
~~~~~~~~~~
- Factorization handle
    - `QR` (methods `qr`, `qr_cgs`, `qr_mgs`, `qr_igs`, `qr_bgs`,
      `qr_rgs`, `qr_cgsp`, `qr_householder`, `qr_givens`,
      `solve`, `pseudo_inverse`)
- Algorithms, ``A -> (Q, R, perm)``
    - Gram-Schmidt: `cgs`, `mgs`, `igs`, `bgs`, `rgs`, `cgsp`
    - Orthogonal transforms: `householder`, `givens`
- Convenience
    - `qr`, `least_squares_qr`, `pinv_qr`, `project_onto_colspace`,
      `back_substitute`

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import numpy as np, qrfactor
>>> A = np.random.randn(5, 3)
>>> f = qrfactor.QR(A).qr_mgs()
>>> np.allclose(f.Q @ f.R, A)
True
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

from .gram_schmidt import bgs, cgs, cgsp, igs, mgs, rgs
from .orthogonal import givens, givens_rotation, householder
from .projections import project_onto_colspace

# ---------------------------------------------------------------------
# Re-export the high-level functions users are expected to call.
# Each of these names is implemented in one of the internal sub-modules.
# ---------------------------------------------------------------------
from .qr import (
    METHODS,
    PIVOTING,
    QR,
    least_squares_qr,
    pinv_qr,
    qr,
    random_nonsingular_qr,
)
from .triangular import back_substitute
from .utils import (
    PINV_REG,
    RANK_TOL,
    random_nonsingular_upper,
    random_well_conditioned,
)

__all__ = [
    "QR",
    "METHODS",
    "PIVOTING",
    "qr",
    "least_squares_qr",
    "pinv_qr",
    "random_nonsingular_qr",
    "cgs",
    "mgs",
    "igs",
    "bgs",
    "rgs",
    "cgsp",
    "householder",
    "givens",
    "givens_rotation",
    "back_substitute",
    "project_onto_colspace",
    "RANK_TOL",
    "PINV_REG",
    "random_nonsingular_upper",
    "random_well_conditioned",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show qrfactor”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except PackageNotFoundError:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
