import json
import sys

from config import load_simulation_config, SimulationConfig
from simulator.simulation import Simulation


def run_simulation(sim_config_path="scenarios/simulation/default.yaml",
                   log_path="simulation_log.jsonl",
                   diagram_path="trajectory_diagram.png"):
    """
    Set up and run the entire simulation

    Args:
        sim_config_path: Path to simulation configuration YAML file (None = defaults)
        log_path: Where to save the JSON Lines event log (None = don't save)
        diagram_path: Where to save the trajectory diagram (None = don't save)

    Returns:
        Summary dictionary of the run
    """
    print("--- Loading Configuration ---")
    if sim_config_path is None:
        sim_config = SimulationConfig()
        print("Simulation Config: built-in defaults")
    else:
        sim_config = load_simulation_config(sim_config_path)
        print(f"Simulation Config: {sim_config_path}")

    print(f"Building: {sim_config.building.num_floors} floors x {sim_config.building.floor_height} ft")
    print(f"Cars: {sim_config.elevator.num_cars} x {sim_config.elevator.max_riders} riders "
          f"@ {sim_config.elevator.travel_speed} ft/s")

    print("\n--- Simulation Setup ---")
    simulation = Simulation(sim_config)

    print("\n--- Simulation Start ---")
    summary = simulation.run()

    print("\n--- Simulation Complete ---")
    simulation.statistics.print_summary()
    print(json.dumps({k: summary[k] for k in ('beats', 'time', 'reason', 'census')}, indent=2))

    if log_path:
        simulation.statistics.save_event_log(log_path)
    if diagram_path:
        simulation.statistics.plot_trajectory_diagram(diagram_path)

    return summary


def main():
    # Accept command line argument for config file
    sim_config_path = sys.argv[1] if len(sys.argv) > 1 else "scenarios/simulation/default.yaml"
    run_simulation(sim_config_path=sim_config_path)


if __name__ == '__main__':
    main()
