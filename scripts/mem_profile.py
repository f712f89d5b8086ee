from __future__ import annotations

import argparse
import tracemalloc

from sketch2d import FrameClock, InputState, create_visualization, setup_logging


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--name", default="particles")
    ap.add_argument("--ticks", type=int, default=20000)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args()

    log = setup_logging(args.log_level)
    vis = create_visualization(args.name, seed=args.seed)
    clock = FrameClock()
    pointer = InputState(*vis.canvas.center)

    half = 0
    tracemalloc.start()
    for k in range(args.ticks):
        clock.advance()
        vis.step(clock, vis.params.snapshot(), pointer)
        if k == args.ticks // 2:
            half, _ = tracemalloc.get_traced_memory()
    current, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    log.info("%s ticks=%d current=%.2f MB (halfway %.2f MB) peak=%.2f MB",
             args.name, args.ticks, current / 1e6, half / 1e6, peak / 1e6)


if __name__ == "__main__":
    main()
