#!/usr/bin/python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Projection operations
"""

import numpy as np

from .qr import QR


def project_onto_colspace(A: np.ndarray, b: np.ndarray, method: str = "mgs") -> np.ndarray:
    """
    Find p = A x, the orthogonal projection of b onto
    the column-space of A, as p = Q (Q^T b).

    Dependent columns of A leave zero columns in Q, so no
    pseudo-inverse fallback is needed for rank-deficient A.

    Returns
    -------
    p : ndarray, shape (m, k) if b is (m,k) or (m,)
    """
    b = np.asarray(b, dtype=float)

    # If we are 1D, make this a column matrix
    if b.ndim == 1:
        b = b[:, None]

    f = QR(A).factorize(method)
    if b.shape[0] != f.shape[0]:
        raise ValueError(f"b has {b.shape[0]} rows, A has {f.shape[0]}")
    Q = f.Q
    return Q @ (Q.T @ b)
