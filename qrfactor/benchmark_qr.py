#!/usr/bin/python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Time every QR variant and compare its least-squares residual and loss of
orthogonality against NumPy. Needs the ``bench`` extra (pandas, tabulate).

    python -m qrfactor.benchmark_qr
"""

import time

import numpy as np
import pandas as pd

from qrfactor.qr import METHODS, QR

REPEATS = 5  # best of 5 runs leads to stable numbers
SIZES = [(100, 100), (300, 300), (1000, 100)]


def wall(f, *args, **kwargs):
    t0 = time.perf_counter()
    f(*args, **kwargs)
    return time.perf_counter() - t0


def run(sizes=SIZES, repeats=REPEATS, seed=0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    records = []
    for m, n in sizes:
        A = rng.standard_normal((m, n))
        b = rng.standard_normal(m)
        k = min(m, n)

        # reference
        t_np = min(wall(np.linalg.lstsq, A, b, rcond=None) for _ in range(repeats))
        x_ref, *_ = np.linalg.lstsq(A, b, rcond=None)
        r_ref = np.linalg.norm(A @ x_ref - b, np.inf)

        for method in METHODS:
            t = min(wall(QR(A).factorize, method) for _ in range(repeats))
            f = QR(A).factorize(method)
            Q = f.Q
            ortho = np.linalg.norm(Q.T @ Q - np.eye(k), np.inf)
            x = f.solve(b)
            r = np.linalg.norm(A @ x - b, np.inf)
            records.append((method, f"{m}×{n}", t, t / t_np, r / r_ref, ortho))

    return pd.DataFrame(
        records,
        columns=["kernel", "size", "sec", "sec/NumPy", "residual/NumPy", "orth_err"],
    )


def main():
    df = run()
    print(df.to_markdown(index=False))
    df.to_csv("bench_results.csv", index=False)


if __name__ == "__main__":
    main()
