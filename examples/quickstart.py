#!/usr/bin/env python
"""
Quick start example - velocity autocorrelation of a synthetic trajectory.

Velocities follow an Ornstein-Uhlenbeck process, so the velocity
autocorrelation should decay as 3 * sigma^2 * exp(-t / tau_c).

Usage:
    python examples/quickstart.py
"""

import numpy as np

from dynprops import CrossCorrelationFunction, Selection, Trajectory


def ornstein_uhlenbeck(n_frames, n_particles, dt, tau_c, sigma, seed=0):
    """Generate (n_frames, n_particles, 3) velocities with exponential memory."""
    rng = np.random.default_rng(seed)
    decay = np.exp(-dt / tau_c)
    noise = sigma * np.sqrt(1.0 - decay**2)

    v = np.empty((n_frames, n_particles, 3))
    v[0] = rng.normal(0.0, sigma, (n_particles, 3))
    for i in range(1, n_frames):
        v[i] = decay * v[i - 1] + noise * rng.normal(size=(n_particles, 3))
    return v


def main():
    print("=" * 60)
    print("dynprops Quick Start")
    print("=" * 60)

    dt, tau_c, sigma = 0.05, 0.5, 1.0
    velocities = ornstein_uhlenbeck(2000, 32, dt, tau_c, sigma)
    positions = np.cumsum(velocities * dt, axis=0)
    traj = Trajectory.from_arrays(positions, velocities=velocities, frame_interval=dt)

    result = CrossCorrelationFunction(traj, "velocity", Selection.all(), n_bins=40).run()

    print(f"\n{result.title}")
    print("-" * 40)
    print(f"{'time':>8} {'count':>8} {'C(t)':>10} {'expected':>10}")
    for t, count, value in zip(result.times[::5], result.counts[::5], result.values[::5]):
        expected = 3.0 * sigma**2 * np.exp(-t / tau_c)
        print(f"{t:8.3f} {count:8d} {value:10.4f} {expected:10.4f}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
