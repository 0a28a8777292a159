"""
Main entry point for the bubble simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the particle system, spawner, simulation and renderer.
4. Runs the main loop: spawn check, physics tick, draw.
5. Handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config, validate_config
import numpy as np
import cProfile
import pstats
import io


def run_loop(sim, population, visualizer, run_params, clock_ms) -> int:
    """
    Runs frames until the user quits or max_steps is reached.

    A tick that raises or is discarded by the simulation is logged and
    counted, and the loop carries on with the next frame.

    Returns the number of frames run.
    """
    log_throttle = run_params.get('log_throttle_steps', 600)
    max_steps = run_params.get('max_steps', 0) # 0 runs until the window is closed
    particles = sim.particles

    step_num = 0
    failed_ticks = 0
    discarded_ticks = 0
    running = True
    while running:
        step_num += 1
        try:
            # Spawning happens between ticks, never while the arrays are iterated.
            population.update(clock_ms())
            width, height = visualizer.viewport_size()
            if not sim.step(width, height):
                discarded_ticks += 1
        except Exception:
            failed_ticks += 1
            logging.exception(f"Tick {step_num} failed; continuing with the next frame.")

        if not visualizer.draw(particles):
            running = False

        if step_num % log_throttle == 0:
            logging.info(
                f"Simulation step {step_num} | Bubbles: {particles.particle_count} | "
                f"Discarded ticks: {discarded_ticks} | Failed ticks: {failed_ticks}"
            )
            if particles.particle_count:
                avg_speed = np.mean(np.linalg.norm(particles.velocities, axis=1))
                logging.debug(f"Step {step_num} | Average Speed: {avg_speed:.4f}")

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False

    if discarded_ticks or failed_ticks:
        logging.warning(
            f"{discarded_ticks} tick(s) discarded and {failed_ticks} tick(s) failed "
            f"over {step_num} frames."
        )
    return step_num


def main():
    """
    The main function to run the simulation.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)
    validate_config(config)

    logging.info("--- Bubble Simulation Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    import pygame
    from particle import ParticleSystem
    from population import PopulationManager
    from simulation import Simulation
    from visualization import Visualizer

    # The visualizer comes first: it owns the window whose size bounds the world.
    visualizer = Visualizer(vis_params, seed=sim_params.get('seed'))
    particles = ParticleSystem(sim_params)
    population = PopulationManager(particles, sim_params, visualizer.viewport_size)
    sim = Simulation(particles, sim_params)

    population.start(pygame.time.get_ticks())

    profiler = cProfile.Profile() if run_params.get('profile', False) else None
    if profiler:
        profiler.enable()
    try:
        run_loop(sim, population, visualizer, run_params, pygame.time.get_ticks)
    finally:
        if profiler:
            profiler.disable()
        population.stop()
        visualizer.close()
    logging.info("Simulation loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Bubble Simulation Shutting Down ---")


if __name__ == "__main__":
    main()
