from __future__ import annotations

import math
import os

import numpy as np
import matplotlib.pyplot as plt

from sketch2d import Canvas, FrameClock, InputState, MouseTrail, ParticleField


ART = os.environ.get("ARTIFACTS_DIR", "artifacts")
os.makedirs(ART, exist_ok=True)


def smoothing_convergence_plot() -> None:
    smooth = 0.1
    vis = MouseTrail(Canvas(800.0, 600.0), parameters={"smoothAmount": smooth})
    target = (760.0, 40.0)
    cx, cy = vis.canvas.center
    d0 = math.hypot(target[0] - cx, target[1] - cy)

    clock = FrameClock()
    ns = np.arange(1, 81)
    dists = []
    for _ in ns:
        clock.advance()
        vis.step(clock, vis.params.snapshot(), InputState(*target))
        x, y = vis.cursor
        dists.append(math.hypot(target[0] - x, target[1] - y))

    plt.figure()
    plt.semilogy(ns, dists, marker=".", label="smoothed cursor (num)")
    plt.semilogy(ns, d0 * (1.0 - smooth) ** ns, "--", label=f"theory {1.0 - smooth:.1f}^n d0")
    plt.xlabel("tick n")
    plt.ylabel("|cursor - target|")
    plt.title("Mouse trail: geometric convergence")
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(os.path.join(ART, "smoothing_convergence.png"), dpi=150)


def particle_population_plot() -> None:
    """Population plateaus at ceil(255 / fade) / spawnRate particles."""
    plt.figure()
    for fade in (2.0, 5.0, 10.0):
        vis = ParticleField(seed=0, parameters={"spawnRate": 1, "fadeSpeed": fade})
        clock = FrameClock()
        counts = []
        for _ in range(300):
            clock.advance()
            vis.step(clock, vis.params.snapshot(), InputState(400.0, 300.0))
            counts.append(len(vis.particles))
        plt.plot(counts, label=f"fadeSpeed={fade:g}")
        plt.axhline(math.ceil(255.0 / fade) - 1, ls=":", lw=0.8)
    plt.xlabel("tick")
    plt.ylabel("live particles")
    plt.title("Particle field: population bound")
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(os.path.join(ART, "particle_population.png"), dpi=150)


if __name__ == "__main__":
    smoothing_convergence_plot()
    particle_population_plot()
