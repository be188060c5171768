# main.py
"""
Main entry point for the Particle Life simulation.

This script runs the simulation headless:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Builds the simulation from the configured parameters and seed.
4. Steps it up to max_steps, logging throttled diagnostics.
5. Saves the rule matrix and reports the performance profile on shutdown.
"""
import logging
import time
import cProfile
import pstats
import io

import numpy as np

from utils import setup_logging, load_config


def main(config_path: str = 'config.json'):
    """
    The main function to run the simulation.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Particle Life Simulation Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    rules_file = config.get('persistence', {}).get('rules_file')

    from simulation import init_simulation
    from rules import save_rules

    sim = init_simulation(sim_params, rules_file=rules_file)
    particles = sim.particles

    log_throttle = max(1, run_params.get('log_throttle_steps', 100))
    max_steps = run_params.get('max_steps', 5000)
    profile = run_params.get('profile', True)

    profiler = cProfile.Profile()
    if profile:
        profiler.enable()

    window_start = time.perf_counter()
    try:
        while sim.frame < max_steps:
            sim.step()

            # Rule 2.4: Hot loops must throttle logs
            if sim.frame % log_throttle == 0:
                now = time.perf_counter()
                steps_per_second = log_throttle / max(now - window_start, 1e-9)
                window_start = now
                logging.info(
                    f"Simulation step {sim.frame}/{max_steps} | "
                    f"{steps_per_second:.1f} steps/s | max speed {sim.max_speed:.4f}"
                )
                if particles.particle_count:
                    avg_velocity = np.mean(np.linalg.norm(particles.velocities, axis=1))
                    logging.debug(f"Step {sim.frame} | Average Velocity: {avg_velocity:.4f}")
    except KeyboardInterrupt:
        logging.info(f"Interrupted at step {sim.frame}. Stopping simulation.")
    else:
        logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
    finally:
        if profile:
            profiler.disable()

    logging.info("Simulation loop finished.")

    if rules_file:
        save_rules(rules_file, sim.interaction_matrix)

    if profile:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Life Simulation Shutting Down ---")


if __name__ == "__main__":
    main()
