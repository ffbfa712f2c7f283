"""Crawler traversal, arithmetic and patch accumulation over growing mesh sizes.

Each workload runs on a ``meshcrawl`` mesh and on an equivalent jitted jax
reference, so the growth of the crawler path can be read against a
vectorized baseline.
"""

from __future__ import annotations

import argparse
import json
import math
import os
import platform
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable

import jax
import jax.numpy as jnp
import numpy as np

from meshcrawl import DoubleMesh, Mesh

_MAX_REPEATS = 10_000


@dataclass(frozen=True)
class MeshWorkload:
    name: str
    note: str
    build_mesh_case: Callable[[int], tuple[Callable[..., object], tuple[object, ...]]]
    build_jax_case: Callable[[int], tuple[Callable[..., object], tuple[object, ...]]]


@dataclass(frozen=True)
class MeshRow:
    side: int
    elements: int
    repeats: int
    samples: int
    mean_ms: float
    p50_ms: float
    p90_ms: float


def _square(side: int) -> DoubleMesh:
    return Mesh.wrap(np.arange(side * side, dtype=np.float64).reshape(side, side))


def _patch_centers(side: int, count: int) -> list[tuple[float, float]]:
    rng = np.random.default_rng(side)
    return [tuple(float(c) for c in row) for row in rng.uniform(-2.0, side, size=(count, 2))]


def _gaussian(offset: tuple[float, ...]) -> float:
    return math.exp(-0.5 * (offset[0] * offset[0] + offset[1] * offset[1]))


def _build_workloads(patches: int, patch_size: float) -> list[MeshWorkload]:
    def crawl_sum_mesh(side: int):
        mesh = _square(side)

        def run(m):
            total = 0.0
            crawler = m.crawler()
            while crawler.has_next():
                total += crawler.advance()
            return total

        return run, (mesh,)

    def crawl_sum_jax(side: int):
        x = jnp.asarray(_square(side).to_numpy())
        return jax.jit(jnp.sum), (x,)

    def add_scaled_mesh(side: int):
        return (lambda a, b: a.add_scaled(b, 0.5)), (_square(side), _square(side))

    def add_scaled_jax(side: int):
        x = jnp.asarray(_square(side).to_numpy())
        return jax.jit(lambda a, b: a + 0.5 * b), (x, x)

    def patch_mesh(side: int):
        centers = _patch_centers(side, patches)
        size = (patch_size, patch_size)

        def run(m):
            for center in centers:
                m.add_patch_at(center, _gaussian, size)

        return run, (DoubleMesh.zeros((side, side)),)

    def patch_jax(side: int):
        centers = jnp.asarray(_patch_centers(side, patches))
        rows = jnp.arange(side, dtype=jnp.float32)[:, None]
        cols = jnp.arange(side, dtype=jnp.float32)[None, :]

        def one(grid, center):
            dr = rows - center[0]
            dc = cols - center[1]
            inside = (
                (rows >= jnp.floor(center[0]))
                & (rows < jnp.ceil(center[0] + patch_size))
                & (cols >= jnp.floor(center[1]))
                & (cols < jnp.ceil(center[1] + patch_size))
            )
            return grid + jnp.where(inside, jnp.exp(-0.5 * (dr * dr + dc * dc)), 0.0), None

        def run(c):
            grid, _ = jax.lax.scan(one, jnp.zeros((side, side), dtype=jnp.float32), c)
            return grid

        return jax.jit(run), (centers,)

    return [
        MeshWorkload("crawl_sum", "full row-major traversal summing every cell", crawl_sum_mesh, crawl_sum_jax),
        MeshWorkload("add_scaled", "conforming add_scaled(other, 0.5)", add_scaled_mesh, add_scaled_jax),
        MeshWorkload(
            "patch_accumulate",
            f"{patches} gaussian patches of size {patch_size}",
            patch_mesh,
            patch_jax,
        ),
    ]


def _host() -> dict[str, object]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "numpy": np.__version__,
        "jax": jax.__version__,
        "backend": jax.default_backend(),
        "cpu_count": os.cpu_count(),
    }


def _per_call_ms(fn, args: tuple[object, ...], repeats: int) -> float:
    start_ns = time.perf_counter_ns()
    for _ in range(repeats):
        jax.block_until_ready(fn(*args))
    return (time.perf_counter_ns() - start_ns) / repeats / 1e6


def _measure(fn, args: tuple[object, ...], side: int, ns: argparse.Namespace) -> MeshRow:
    """Time ``fn`` in batches sized to ``--target-sample-ms`` until the spread settles."""
    for _ in range(max(0, ns.warmup)):
        jax.block_until_ready(fn(*args))
    trial_ms = max(_per_call_ms(fn, args, max(1, ns.min_repeats)), 1e-3)
    repeats = int(min(_MAX_REPEATS, max(ns.min_repeats, math.ceil(ns.target_sample_ms / trial_ms))))

    samples = [_per_call_ms(fn, args, repeats) for _ in range(max(2, ns.samples))]
    while len(samples) < ns.max_samples:
        spread_pct = 100.0 * np.std(samples, ddof=1) / np.mean(samples)
        if spread_pct <= ns.cv_target_pct:
            break
        samples.append(_per_call_ms(fn, args, repeats))

    return MeshRow(
        side=side,
        elements=side * side,
        repeats=repeats,
        samples=len(samples),
        mean_ms=float(np.mean(samples)),
        p50_ms=float(np.percentile(samples, 50)),
        p90_ms=float(np.percentile(samples, 90)),
    )


def _print_rows(engine: str, rows: list[MeshRow]) -> None:
    print(engine)
    print(f"{'side':>6} {'elements':>10} {'repeats':>8} {'mean(ms)':>11} {'p90(ms)':>11} {'growth':>8}")
    prev: float | None = None
    for row in rows:
        growth = "-" if prev is None else f"{row.mean_ms / prev:7.2f}x"
        print(
            f"{row.side:6d} "
            f"{row.elements:10d} "
            f"{row.repeats:8d} "
            f"{row.mean_ms:11.4f} "
            f"{row.p90_ms:11.4f} "
            f"{growth:>8}"
        )
        prev = row.mean_ms
    print()


def _powers_of_two(min_exp: int, max_exp: int) -> list[int]:
    if min_exp > max_exp:
        raise ValueError("minimum exponent cannot be greater than maximum exponent")
    return [1 << exp for exp in range(min_exp, max_exp + 1)]


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark mesh crawling against jitted jax references.")
    parser.add_argument("--min-exp", type=int, default=4, help="minimum exponent for the square side (2^exp)")
    parser.add_argument("--max-exp", type=int, default=8, help="maximum exponent for the square side (2^exp)")
    parser.add_argument("--patches", type=int, default=64, help="patches per accumulation run")
    parser.add_argument("--patch-size", type=float, default=5.0, help="patch extent in each dimension")
    parser.add_argument("--warmup", type=int, default=2)
    parser.add_argument("--samples", type=int, default=5)
    parser.add_argument("--max-samples", type=int, default=15)
    parser.add_argument("--min-repeats", type=int, default=3)
    parser.add_argument("--target-sample-ms", type=float, default=50.0)
    parser.add_argument("--cv-target-pct", type=float, default=5.0)
    parser.add_argument("--only", default="", help="comma-separated workload names to run")
    parser.add_argument("--json-out", default="", help="optional path to write machine-readable results")
    args = parser.parse_args()

    sides = _powers_of_two(args.min_exp, args.max_exp)
    selected = {name.strip() for name in args.only.split(",") if name.strip()}

    print("Mesh crawler benchmark suite")
    print(f"square sides: 2^{args.min_exp} .. 2^{args.max_exp}")
    print()

    payload_rows: list[dict[str, object]] = []
    for workload in _build_workloads(args.patches, args.patch_size):
        if selected and workload.name not in selected:
            continue
        title = f"{workload.name}: {workload.note}"
        print(title)
        print("-" * len(title))
        for engine, build in (("meshcrawl", workload.build_mesh_case), ("jax", workload.build_jax_case)):
            rows = []
            for side in sides:
                fn, fn_args = build(side)
                rows.append(_measure(fn, fn_args, side, args))
            _print_rows(engine, rows)
            payload_rows.append(
                {
                    "workload": workload.name,
                    "note": workload.note,
                    "engine": engine,
                    "rows": [asdict(row) for row in rows],
                }
            )

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "host": _host(),
            "config": {
                "side_exp_range": [args.min_exp, args.max_exp],
                "patches": args.patches,
                "patch_size": args.patch_size,
            },
            "results": payload_rows,
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON benchmark output: {outpath}")


if __name__ == "__main__":
    main()
