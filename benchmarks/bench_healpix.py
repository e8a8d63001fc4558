#!/usr/bin/env python3
"""Benchmark torchpix HEALPix kernels against healpy on CPU/CUDA."""

from __future__ import annotations

import argparse
import csv
import json
import time
from pathlib import Path
from typing import Any, Callable

import numpy as np
import torch

try:
    import healpy as hp
except ImportError as exc:  # pragma: no cover
    raise SystemExit("healpy is required for bench_healpix.py") from exc

from torchpix.healpix import (
    ang2pix_nest,
    ang2pix_ring,
    get_all_neighbours,
    is_power_of_two,
    nest2ring,
    pix2ang_nest,
    pix2ang_ring,
    ring2nest,
)


def _sync(device: torch.device) -> None:
    if device.type == "cuda":
        torch.cuda.synchronize(device=device)
    elif device.type == "mps":
        torch.mps.synchronize()


def _time_many(fn, runs: int, sync_device: torch.device | None = None) -> float:
    fn()
    if sync_device is not None:
        _sync(sync_device)
    times: list[float] = []
    for _ in range(runs):
        t0 = time.perf_counter()
        fn()
        if sync_device is not None:
            _sync(sync_device)
        times.append(time.perf_counter() - t0)
    return float(np.median(times))


def _phi_delta(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return ((a - b + np.pi) % (2.0 * np.pi)) - np.pi


def _sample_angles(n: int, seed: int, profile: str) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    if profile == "uniform":
        theta = np.arccos(rng.uniform(-1.0, 1.0, n))
        phi = rng.uniform(0.0, 2.0 * np.pi, n)
        return theta, phi

    # face edges, the cap/belt transition and the poles
    if profile == "boundary":
        phi0 = rng.integers(0, 8, size=n) * (np.pi / 4.0)
        phi = np.mod(phi0 + rng.normal(0.0, 1.0e-7, size=n), 2.0 * np.pi)
        transition = np.arccos(2.0 / 3.0)
        block = np.array(
            [transition, np.pi - transition, np.pi / 2.0, 1.0e-6, np.pi - 1.0e-6],
            dtype=np.float64,
        )
        idx = rng.integers(0, block.size, size=n)
        theta = np.clip(block[idx] + rng.normal(0.0, 1.0e-7, size=n), 0.0, np.pi)
        return theta, phi

    n0 = n // 2
    t0, p0 = _sample_angles(n0, seed, "uniform")
    t1, p1 = _sample_angles(n - n0, seed + 1, "boundary")
    return np.concatenate([t0, t1]), np.concatenate([p0, p1])


def _sample_pix(nside: int, n: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    npix = 12 * nside * nside
    base = rng.integers(0, npix, size=n, dtype=np.int64)
    if n >= 32 and npix >= 32:
        base[:16] = np.arange(16, dtype=np.int64)
        base[16:32] = np.arange(npix - 16, npix, dtype=np.int64)
    return base


def _resolve_device(choice: str) -> torch.device:
    if choice == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            return torch.device("mps")
        return torch.device("cpu")
    if choice == "cuda" and not torch.cuda.is_available():
        raise RuntimeError("CUDA requested but no CUDA device is available")
    if choice == "mps":
        if not hasattr(torch.backends, "mps") or not torch.backends.mps.is_available():
            raise RuntimeError("MPS requested but no MPS device is available")
    return torch.device(choice)


def _row(
    operation: str,
    nside: int,
    n: int,
    profile: str,
    device: torch.device,
    t_torch: float,
    t_hp: float,
    mismatches: int,
    max_dtheta: float = float("nan"),
    max_dphi: float = float("nan"),
) -> dict[str, Any]:
    return {
        "operation": operation,
        "nside": nside,
        "n_points": n,
        "sample_profile": profile,
        "device": device.type,
        "torch_ms": t_torch * 1000.0,
        "healpy_ms": t_hp * 1000.0,
        "torch_mpts_s": (n / t_torch) / 1e6,
        "healpy_mpts_s": (n / t_hp) / 1e6,
        "speedup_vs_healpy": t_hp / t_torch if t_torch > 0 else float("nan"),
        "mismatches": mismatches,
        "max_dtheta": max_dtheta,
        "max_dphi": max_dphi,
    }


def _run_benchmark(
    nside: int, n: int, runs: int, seed: int, profile: str, device: torch.device
) -> list[dict[str, Any]]:
    theta, phi = _sample_angles(n, seed, profile)
    ring = _sample_pix(nside, n, seed + 1)
    nest = _sample_pix(nside, n, seed + 2)

    float_dtype = torch.float32 if device.type == "mps" else torch.float64
    theta_t = torch.from_numpy(theta).to(device=device, dtype=float_dtype)
    phi_t = torch.from_numpy(phi).to(device=device, dtype=float_dtype)
    ring_t = torch.from_numpy(ring).to(device=device)
    nest_t = torch.from_numpy(nest).to(device=device)

    index_ops: list[tuple[str, Callable[[], torch.Tensor], Callable[[], np.ndarray]]] = [
        (
            "ang2pix_ring",
            lambda: ang2pix_ring(nside, theta_t, phi_t),
            lambda: hp.ang2pix(nside, theta, phi, nest=False),
        ),
        (
            "neighbours_ring",
            lambda: get_all_neighbours(nside, ring_t, nest=False),
            lambda: hp.get_all_neighbours(nside, ring, nest=False),
        ),
    ]
    angle_ops = [("pix2ang_ring", lambda: pix2ang_ring(nside, ring_t), lambda: hp.pix2ang(nside, ring))]
    if is_power_of_two(nside):
        index_ops += [
            (
                "ang2pix_nest",
                lambda: ang2pix_nest(nside, theta_t, phi_t),
                lambda: hp.ang2pix(nside, theta, phi, nest=True),
            ),
            ("ring2nest", lambda: ring2nest(nside, ring_t), lambda: hp.ring2nest(nside, ring)),
            ("nest2ring", lambda: nest2ring(nside, nest_t), lambda: hp.nest2ring(nside, nest)),
            (
                "neighbours_nest",
                lambda: get_all_neighbours(nside, nest_t, nest=True),
                lambda: hp.get_all_neighbours(nside, nest, nest=True),
            ),
        ]
        angle_ops.append(
            ("pix2ang_nest", lambda: pix2ang_nest(nside, nest_t), lambda: hp.pix2ang(nside, nest, nest=True))
        )

    rows: list[dict[str, Any]] = []
    for name, torch_fn, hp_fn in index_ops:
        t_torch = _time_many(torch_fn, runs, sync_device=device)
        t_hp = _time_many(hp_fn, runs)
        got = torch_fn().cpu().numpy()
        mismatches = int(np.sum(np.any(np.atleast_2d(got != hp_fn()), axis=0)))
        rows.append(_row(name, nside, n, profile, device, t_torch, t_hp, mismatches))

    eps = 1.0e-10 if float_dtype == torch.float64 else 1.0e-4
    for name, torch_fn, hp_fn in angle_ops:
        t_torch = _time_many(torch_fn, runs, sync_device=device)
        t_hp = _time_many(hp_fn, runs)
        theta_got, phi_got = torch_fn()
        theta_exp, phi_exp = hp_fn()
        dtheta = np.abs(theta_got.cpu().numpy() - theta_exp)
        dphi = np.abs(_phi_delta(phi_got.cpu().numpy(), phi_exp))
        mismatches = int(np.sum((dtheta > eps) | (dphi > eps)))
        rows.append(
            _row(
                name, nside, n, profile, device, t_torch, t_hp, mismatches,
                float(dtheta.max()), float(dphi.max()),
            )
        )
    return rows


def _print_rows(rows: list[dict[str, Any]]) -> None:
    print(
        " ".join(
            f"{c:>16s}"
            for c in (
                "operation",
                "torch_mpts/s",
                "healpy_mpts/s",
                "vs_healpy_x",
                "mismatches",
                "max_dtheta",
                "max_dphi",
            )
        )
    )
    for row in rows:
        print(
            f"{row['operation']:>16s} "
            f"{row['torch_mpts_s']:16.2f} "
            f"{row['healpy_mpts_s']:16.2f} "
            f"{row['speedup_vs_healpy']:16.2f} "
            f"{row['mismatches']:16d} "
            f"{row['max_dtheta']:16.3e} "
            f"{row['max_dphi']:16.3e}"
        )


def _write_json(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2)


def _write_csv(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        w.writeheader()
        w.writerows(rows)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--nside", type=int, default=1024)
    parser.add_argument("--n-points", type=int, default=200_000)
    parser.add_argument("--runs", type=int, default=5)
    parser.add_argument("--seed", type=int, default=123)
    parser.add_argument(
        "--device", choices=["auto", "cpu", "cuda", "mps"], default="auto"
    )
    parser.add_argument(
        "--sample-profile", choices=["uniform", "boundary", "mixed"], default="mixed"
    )
    parser.add_argument(
        "--json-out", type=Path, default=None, help="Optional JSON output path"
    )
    parser.add_argument(
        "--csv-out", type=Path, default=None, help="Optional CSV output path"
    )
    parser.add_argument(
        "--max-mismatches",
        type=int,
        default=0,
        help="Fail if any operation exceeds this mismatch count",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    device = _resolve_device(args.device)
    rows = _run_benchmark(
        nside=args.nside,
        n=args.n_points,
        runs=args.runs,
        seed=args.seed,
        profile=args.sample_profile,
        device=device,
    )

    print(
        f"NSIDE={args.nside} N={args.n_points} runs={args.runs} device={device.type} profile={args.sample_profile}"
    )
    _print_rows(rows)

    if args.json_out is not None:
        _write_json(args.json_out, rows)
    if args.csv_out is not None:
        _write_csv(args.csv_out, rows)

    bad = [r for r in rows if r["mismatches"] > args.max_mismatches]
    if bad:
        print("\nMismatch threshold exceeded:")
        for row in bad:
            print(f"  {row['operation']}: mismatches={row['mismatches']}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
