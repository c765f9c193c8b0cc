"""Inspect a sum-product decoding run iteration by iteration."""

from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import List, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .. import config
from ..core import (
    ChannelModel,
    Direction,
    IndexOutOfRange,
    Session,
    load_matrix,
    load_reference_code,
)

logger = logging.getLogger(__name__)

COLUMN = 8


def _row(values, fmt: str = "%7.4f", mask=None) -> str:
    cells = []
    for i, value in enumerate(values):
        if mask is not None and not mask[i]:
            cells.append(" " * COLUMN)
        else:
            cells.append((fmt % value).ljust(COLUMN))
    return "".join(cells).rstrip()


def format_channel(session: Session) -> str:
    channel = session.channel
    lines = [
        "Channel",
        _row(channel.probabilities()),
        "Channel LLR",
        _row(channel.llrs()),
    ]
    return "\n".join(lines)


def format_iteration(session: Session, k: int) -> str:
    """Text view of iteration `k`, laid out one column per variable."""

    it = session.trace.at(k)
    lines = [f"Iteration {k + 1} of {session.iterations}:", "Check-to-variable messages:"]
    lines.extend(_row(it.c2v[c], mask=it.edges[c]) for c in range(session.matrix.n_c))
    lines.append("Variable-to-check messages:")
    lines.extend(_row(it.v2c[c], mask=it.edges[c]) for c in range(session.matrix.n_c))
    lines.append("L:")
    lines.append(_row(it.marginal))
    lines.append("Codeword:")
    lines.append(" ".join(str(int(b)) for b in it.bits))
    lines.append("Parity:")
    lines.append(" ".join(str(int(s)) for s in it.syndrome))
    if it.numeric_warning:
        lines.append(f"Saturated edges: {it.saturated_edges()}")
    lines.append("=== %s ===" % (" Valid codeword " if it.is_valid else "Invalid codeword"))
    return "\n".join(lines)


def _parse_adjust(text: str) -> Tuple[int, int]:
    try:
        var_str, steps_str = text.split(":", 1)
        return int(var_str), int(steps_str)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected VAR:+STEPS or VAR:-STEPS, got {text!r}") from exc


def build_session(args: argparse.Namespace) -> Session:
    cfg = config.get_config()
    code = load_reference_code(args.code or cfg.reference_code)
    if args.llr and args.prob:
        raise ValueError("--llr and --prob are mutually exclusive")

    if args.matrix:
        matrix = load_matrix(args.matrix)
        llrs = None
    else:
        matrix = code.matrix()
        llrs = code.llrs

    if args.prob:
        channel = ChannelModel(matrix.n_v, args.prob, cfg=cfg)
    else:
        channel = ChannelModel.from_llrs(matrix.n_v, args.llr or llrs, cfg=cfg)

    if args.iterations is not None:
        iterations = args.iterations
    elif args.matrix:
        iterations = cfg.iterations
    else:
        iterations = code.iterations
    return Session(matrix, channel, iterations)


def write_csv(session: Session, path: Path) -> None:
    n_v, n_c = session.matrix.n_v, session.matrix.n_c
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        header = ["iteration", "valid", "saturated"]
        header.extend(f"L{v}" for v in range(n_v))
        header.extend(f"bit{v}" for v in range(n_v))
        header.extend(f"parity{c}" for c in range(n_c))
        writer.writerow(header)
        for it in session.trace:
            row: List[object] = [it.index, int(it.is_valid), int(it.numeric_warning)]
            row.extend(f"{m:.6e}" for m in it.marginal)
            row.extend(int(b) for b in it.bits)
            row.extend(int(s) for s in it.syndrome)
            writer.writerow(row)


def plot_marginals(session: Session, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    marginals = np.array([it.marginal for it in session.trace])
    steps = np.arange(1, len(session.trace) + 1)
    plt.figure(figsize=(6, 4))
    for v in range(session.matrix.n_v):
        plt.plot(steps, marginals[:, v], "o-", label=f"v{v}")
    for it in session.trace:
        if not it.is_valid:
            plt.axvspan(it.index + 0.5, it.index + 1.5, color="red", alpha=0.08)
    plt.axhline(0.0, color="k", lw=0.8)
    plt.xlabel("Iteration")
    plt.ylabel("Total LLR")
    plt.grid(True, ls="--", alpha=0.4)
    plt.legend(ncol=2, fontsize="small")
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()


def run(args: argparse.Namespace) -> Session:
    session = build_session(args)

    adjustments = args.adjust or []
    for v, _ in adjustments:
        if not 0 <= v < session.matrix.n_v:
            raise IndexOutOfRange(f"--adjust variable {v} out of range [0, {session.matrix.n_v})")
    for v, steps in adjustments:
        direction = Direction.INCREASE if steps > 0 else Direction.DECREASE
        for _ in range(abs(steps)):
            session.adjust_probability(v, direction)

    print(format_channel(session))
    if args.page is not None:
        page = min(max(args.page, 0), session.iterations - 1)
        if page != args.page:
            logger.warning("--page %d clamped to %d", args.page, page)
        pages = [page]
    else:
        pages = range(session.iterations)
    for k in pages:
        print()
        print(format_iteration(session, k))

    final = session.trace.final
    first = session.trace.first_valid()
    logger.info(
        "Final iteration %s; first valid iteration: %s",
        "valid" if final.is_valid else "invalid",
        "none" if first is None else first + 1,
    )

    if args.csv:
        csv_path = Path(args.csv)
        write_csv(session, csv_path)
        print(f"Saved trace table to {csv_path}")

    if args.plot:
        plot_path = Path(args.plot)
        plot_marginals(session, plot_path)
        print(f"Saved marginal plot to {plot_path}")

    return session


def build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect a sum-product LDPC decoding run")
    parser.add_argument("--code", type=str, default=None, help="Reference code name")
    parser.add_argument("--matrix", type=str, help="Text file with a 0/1 parity-check table")
    parser.add_argument("--iterations", type=int, default=None)
    parser.add_argument("--llr", type=float, nargs="+", help="Initial channel LLRs")
    parser.add_argument("--prob", type=float, nargs="+", help="Initial channel probabilities P(bit=0)")
    parser.add_argument(
        "--adjust",
        type=_parse_adjust,
        action="append",
        help="Step a probability, e.g. 2:+3 or 0:-1 (repeatable)",
    )
    parser.add_argument("--page", type=int, default=None, help="Show only this iteration (0-based)")
    parser.add_argument("--csv", type=str, help="CSV output path")
    parser.add_argument("--plot", type=str, help="PNG output path for marginals per iteration")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: List[str] | None = None) -> None:
    parser = build_argparser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    try:
        run(args)
    except (IndexOutOfRange, ValueError) as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
