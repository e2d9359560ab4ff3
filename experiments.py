"""
Huffman experiments: linear-scan priority queue vs heap priority queue

Both pipelines must produce the same tree (same tie-break), so the runs
double as a consistency check on top of the timing data.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_kb 1024
  python experiments.py --outdir results --exp1_generators uniform64,zipf64,repetitive90,english_like
"""

from __future__ import annotations

import argparse
import csv
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import matplotlib.pyplot as plt

import huffman as huff
from pqueue import HeapPQueue, PQueue

PIPELINES: Dict[str, Callable[[], PQueue]] = {
    "linear": PQueue,
    "heap": HeapPQueue,
}


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def entropy(ft: Dict[str, int]) -> float:
    total = sum(ft.values())
    return -sum((n / total) * math.log2(n / total) for n in ft.values())


def pack_bits(bits: huff.Bits) -> Tuple[bytes, int]:
    """
    Packs a bit list MSB-first into bytes
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for bit in bits:
        acc = (acc << 1) | (1 if bit else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc & 0xFF)
            acc = 0
            acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        acc = acc << pad_bits
        out.append(acc & 0xFF)

    return bytes(out), pad_bits


def unpack_bits(packed: bytes, pad_bits: int) -> huff.Bits:
    total_bits = len(packed) * 8 - pad_bits
    bits: huff.Bits = []
    for byte in packed:
        for i in range(7, -1, -1):
            if len(bits) >= total_bits:
                break
            bits.append(bool((byte >> i) & 1))
    return bits


# Synthetic dataset generators

def _alphabet(n: int) -> List[str]:
    return [chr(0x20 + i) for i in range(n)]

def _sample(rng: random.Random, chars: List[str], weights: List[float], size: int) -> str:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    out = []
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        out.append(chars[lo])
    return "".join(out)

def gen_uniform(size: int, alphabet: int = 64, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = _alphabet(alphabet)
    return "".join(rng.choice(chars) for _ in range(size))

def gen_repetitive(size: int, dominant: str = "A", dom_frac: float = 0.90, seed: int = 0) -> str:
    rng = random.Random(seed)
    others = [c for c in _alphabet(95) if c != dominant]
    return "".join(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 64, s: float = 1.2, seed: int = 0) -> str:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(rng, _alphabet(alphabet), weights, size)

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = list(" etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n")
    weights = []
    for ch in chars:
        if ch == " ":
            weights.append(13.0)
        elif ch == "\n":
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample(rng, chars, weights, size)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "uniform95": lambda size, seed: gen_uniform(size, alphabet=95, seed=seed),
    "uniform64": lambda size, seed: gen_uniform(size, alphabet=64, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "zipf32": lambda size, seed: gen_zipf_like(size, alphabet=32, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> Tuple[str, str]:
    """
    Unknown dataset names fall back to uniform64 so a typo doesn't kill a long run
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform64", gen_uniform(size, alphabet=64, seed=seed)
    return name, fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    text_length: int
    run_id: int
    pipeline: str  # "linear" or "heap"
    unique_symbols: int

    build_tree_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    encoded_bits: int
    compressed_bytes: int
    pad_bits: int
    compression_ratio: float
    avg_code_length: float
    entropy_bits: float

    correctness_ok: int  # 1 or 0
    codes_match: int  # 1 if both pipelines produced the same code map


def run_one(text: str, pipeline: str) -> Tuple[MetricRow, huff.CodeMap]:
    queue_factory = PIPELINES.get(pipeline)
    if queue_factory is None:
        raise ValueError(f"pipeline must be one of {sorted(PIPELINES)}")

    ft = huff.freq_table(text)

    # Tree build on its own, encode() below rebuilds it as part of the pipeline
    t0 = now_ns()
    huff.tree_from_freq_table(ft, queue_factory)
    t1 = now_ns()
    build_tree_ms = ns_to_ms(t1 - t0)

    t2 = now_ns()
    coding = huff.encode(text, queue_factory)
    packed, pad_bits = pack_bits(coding.data)
    t3 = now_ns()
    encode_ms = ns_to_ms(t3 - t2)

    t4 = now_ns()
    bits = unpack_bits(packed, pad_bits)
    decoded = huff.decode(coding.code, bits, length=coding.length, strict=True)
    t5 = now_ns()
    decode_ms = ns_to_ms(t5 - t4)

    correctness_ok = 1 if decoded == text and bits == coding.data else 0
    raw_bytes = len(text.encode("utf-8"))

    row = MetricRow(
        exp_name="",
        dataset_name="",
        text_length=len(text),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(ft),
        build_tree_ms=build_tree_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_tree_ms + encode_ms + decode_ms,
        encoded_bits=len(coding.data),
        compressed_bytes=len(packed),
        pad_bits=pad_bits,
        compression_ratio=len(packed) / max(1, raw_bytes),
        avg_code_length=len(coding.data) / len(text),
        entropy_bits=entropy(ft),
        correctness_ok=correctness_ok,
        codes_match=0,
    )
    return row, coding.code


def run_pipelines(text: str, exp_name: str, dataset_name: str, run_id: int) -> List[MetricRow]:
    rows = []
    codes = []
    for pipeline in PIPELINES:
        row, code = run_one(text, pipeline)
        row.exp_name = exp_name
        row.dataset_name = dataset_name
        row.run_id = run_id
        rows.append(row)
        codes.append(code)

    match = 1 if all(c == codes[0] for c in codes) else 0
    for row in rows:
        row.codes_match = match
    return rows


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


SUMMARY_METRICS = ["compression_ratio", "avg_code_length", "build_tree_ms", "encode_ms", "decode_ms", "total_ms"]

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, text_length, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.text_length, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "text_length", "pipeline", "n_runs", "entropy_bits"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields += ["correctness_ok_rate", "codes_match_rate"]

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, length, pipeline = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "text_length": length,
                "pipeline": pipeline,
                "n_runs": len(items),
                "entropy_bits": statistics.mean(x.entropy_bits for x in items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
                "codes_match_rate": sum(x.codes_match for x in items) / len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(out)


# Plotting

def _mean_of(rows: List[MetricRow], field: str) -> float:
    vals = [getattr(r, field) for r in rows]
    return statistics.mean(vals) if vals else float("nan")


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    # Code length does not depend on the queue, plot it against entropy instead
    plt.figure()
    y = [_mean_of([r for r in exp_rows if r.dataset_name == d], "avg_code_length") for d in datasets]
    h = [_mean_of([r for r in exp_rows if r.dataset_name == d], "entropy_bits") for d in datasets]
    plt.plot(x, y, marker="o", label="huffman avg code length")
    plt.plot(x, h, marker="x", linestyle="--", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length vs Entropy by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_code_length.png", dpi=200)
    plt.close()

    for field, label, fname in (
        ("build_tree_ms", "Tree Build Time (ms)", "exp1_build_time.png"),
        ("total_ms", "Total Time (ms) (build + encode + decode)", "exp1_total_time.png"),
    ):
        plt.figure()
        for p in PIPELINES:
            y = [_mean_of([r for r in exp_rows if r.dataset_name == d and r.pipeline == p], field)
                 for d in datasets]
            plt.plot(x, y, marker="o", label=p)
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(label)
        plt.title(f"Experiment 1: {label.split(' (')[0]} by Distribution")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / fname, dpi=200)
        plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.text_length for r in dist_rows))

        for field, label, stem in (
            ("encode_ms", "Encode Time (ms)", "exp2_encode_time"),
            ("decode_ms", "Decode Time (ms)", "exp2_decode_time"),
            ("compression_ratio", "Compressed Bytes / UTF-8 Bytes", "exp2_compression_ratio"),
        ):
            plt.figure()
            for p in PIPELINES:
                y = [_mean_of([r for r in dist_rows if r.text_length == s and r.pipeline == p], field)
                     for s in sizes]
                plt.plot(sizes, y, marker="o", label=p)
            plt.xlabel("Text Length (symbols)")
            plt.ylabel(label)
            plt.title(f"Experiment 2: {label} vs Size ({dist})")
            plt.legend()
            plt.tight_layout()
            plt.savefig(outdir / f"{stem}_{dist}.png", dpi=200)
            plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman coding experiments (linear vs heap priority queue)")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=64, help="Experiment 1 fixed text length in K symbols")
    ap.add_argument("--exp1_generators", type=str, default="uniform64,zipf64,repetitive90,english_like",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=1, help="Experiment 2 min length in K symbols (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=256, help="Experiment 2 max length in K symbols (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform64,zipf64,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            for run_id in range(1, args.runs + 1):
                dataset_name, text = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                rows += run_pipelines(text, "exp1_distribution", dataset_name, run_id)
            print(f"exp1: {gen_name} done")

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        min_len = max(1, args.exp2_min_kb) * 1024
        max_len = max(1, args.exp2_max_kb) * 1024

        sizes: List[int] = []
        s = min_len
        while s <= max_len:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, text = generate_dataset(gen_name, size, args.seed + 10_000 + size + run_id)
                    rows += run_pipelines(text, "exp2_size_scaling", dataset_name, run_id)
            print(f"exp2: {gen_name} done ({len(sizes)} sizes)")

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    match_rate = sum(r.codes_match for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print(f"Linear/heap code agreement: {match_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
