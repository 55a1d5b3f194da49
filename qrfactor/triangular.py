# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .utils import RANK_TOL, is_negligible

logger = logging.getLogger(__name__)


def back_substitute(
    U: np.ndarray,
    c: np.ndarray,
    tol: float = RANK_TOL,
    allow_free: bool = True,
) -> np.ndarray:
    """
    Parameters
    ----------
    U : (k, n) ndarray, k <= n
        Upper-trapezoidal matrix (the R factor of a QR decomposition).
    c : (k,) or (k, r) ndarray
        Right-hand side(s), usually Q^T b.
    tol : float
        Pivots with |U[i, i]| <= tol count as zero.
    allow_free : bool
        If True, the unknown belonging to a zero pivot is free and set to
        0; so are the trailing n - k unknowns of a wide system. If False a
        zero pivot raises.

    Returns
    -------
    x : (n,) or (n, r) ndarray
        Solution(s) of Ux = c, same dimensionality as c.

    Raises
    ------
    ValueError : on shape mismatch, or a zero pivot with allow_free=False.
    """
    U = np.asarray(U, dtype=float)
    c = np.asarray(c, dtype=float)

    k, n = U.shape
    if k > n:
        raise ValueError(f"U must be square or wide, got shape {U.shape}")
    if c.shape[0] != k:
        raise ValueError(f"c has {c.shape[0]} rows, U has {k}")

    vector = c.ndim == 1
    if vector:
        # (k,)  →  (k,1)
        c = c[:, None]
    x = np.zeros((n, c.shape[1]), dtype=float)

    for i in reversed(range(k)):
        pivot = U[i, i]
        if is_negligible(pivot, tol):
            if not allow_free:
                raise ValueError("rank deficient (infinitely many solutions)")
            logger.debug(f"zero pivot in row {i}; x[{i}] is free, set to 0")
            continue

        s = c[i] - U[i, i + 1 :] @ x[i + 1 :]
        x[i] = s / pivot

    if vector:
        # (n,1)  →  (n,)
        return x.ravel()
    return x
