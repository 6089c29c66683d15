import json
import re
from datetime import datetime

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


class Statistics:
    """
    Receives all communications from the broadcast pipe and records what
    is needed for reporting, as an independent "recorder":
    - car trajectories (from the per-beat snapshots)
    - rider lifecycle times (created, boarded, offloaded)
    - dispatch assignments and starved calls
    Also collects every event in JSON Lines format for offline playback.
    """
    def __init__(self, env, broadcast_pipe, floor_height: int, record_snapshots: bool = True):
        """
        Args:
            env: SimPy environment
            broadcast_pipe: Broker broadcast pipe (simpy.Store)
            floor_height: Floor height in feet (converts locations to floors)
            record_snapshots: Keep every per-beat snapshot in memory and in the event log
        """
        self.env = env
        self.broadcast_pipe = broadcast_pipe
        self.floor_height = floor_height
        self.record_snapshots = record_snapshots

        self.car_trajectories = {}  # {car_name: [(time, position_in_floors), ...]}
        self.car_state_history = {}  # {car_name: [(time, state), ...]}
        self.riders = {}  # {rider_id: {origin, destination, created, boarded, offloaded, car}}
        self.assignments = []
        self.starved_calls = []
        self.snapshots = []

        # JSON Lines event log for offline playback
        self.event_log = []
        self.simulation_metadata = {}

    def _add_event_log(self, event_type, event_data):
        """
        Add an event to the JSON Lines log.

        Args:
            event_type (str): Type of event (e.g., 'car_status', 'rider_boarded')
            event_data (dict): Event-specific data
        """
        self.event_log.append({
            "time": self.env.now,
            "type": event_type,
            "data": event_data
        })

    def set_simulation_metadata(self, metadata):
        """
        Set simulation metadata (called before simulation starts).

        Args:
            metadata (dict): Simulation configuration (num_floors, cars, etc.)
        """
        self.simulation_metadata = {
            "format_version": "1.0",
            "timestamp": datetime.now().isoformat(),
            "config": metadata
        }

    def start_listening(self):
        """
        Main process to start intercepting global broadcasts.
        """
        while True:
            data = yield self.broadcast_pipe.get()
            self.record(data.get('topic', ''), data.get('message', {}))

    def record(self, topic, message):
        """Record one broadcast message."""
        if topic == 'bank/snapshot':
            self._record_snapshot(message)
            return

        status_match = re.match(r'car/(.*?)/status$', topic)
        if status_match:
            car_name = status_match.group(1)
            self.car_state_history.setdefault(car_name, []).append((message.get('timestamp'), message.get('state')))
            self._add_event_log('car_status', {
                'car': car_name,
                'state': message.get('state'),
                'floor': message.get('floor'),
                'direction': message.get('direction'),
                'onboard': message.get('onboard_count'),
                'trip_count': message.get('trip_count'),
            })
            return

        if topic == 'rider/created':
            self.riders[message['rider_id']] = {
                'origin': message.get('origin'),
                'destination': message.get('destination'),
                'created': message.get('timestamp'),
                'boarded': None,
                'offloaded': None,
                'car': None,
            }
            self._add_event_log('rider_created', message)
        elif topic == 'rider/boarded':
            rider = self.riders.setdefault(message['rider_id'], {})
            rider['boarded'] = message.get('timestamp')
            rider['car'] = message.get('car')
            self._add_event_log('rider_boarded', message)
        elif topic == 'rider/offloaded':
            rider = self.riders.setdefault(message['rider_id'], {})
            rider['offloaded'] = message.get('timestamp')
            self._add_event_log('rider_offloaded', message)
        elif topic == 'dispatch/assignment':
            self.assignments.append(message)
            self._add_event_log('assignment', message)
        elif topic == 'dispatch/starved_call':
            self.starved_calls.append(message)
            self._add_event_log('starved_call', message)

    def _record_snapshot(self, snapshot):
        timestamp = snapshot.get('time')
        for car_id, car in snapshot.get('cars', {}).items():
            name = f"Car_{car_id}"
            position = car['location'] / self.floor_height + 1
            trajectory = self.car_trajectories.setdefault(name, [])
            # Record only changes of position
            if not trajectory or trajectory[-1][1] != position:
                trajectory.append((timestamp, position))

        if self.record_snapshots:
            self.snapshots.append(snapshot)
            self._add_event_log('snapshot', snapshot)

    # --- metrics ---

    def wait_times(self):
        """Seconds from arrival to boarding, for every rider that boarded."""
        return [r['boarded'] - r['created'] for r in self.riders.values()
                if r.get('boarded') is not None and r.get('created') is not None]

    def ride_times(self):
        """Seconds from boarding to offloading, for every delivered rider."""
        return [r['offloaded'] - r['boarded'] for r in self.riders.values()
                if r.get('offloaded') is not None and r.get('boarded') is not None]

    @staticmethod
    def _describe(values):
        if not values:
            return {'count': 0}
        arr = np.asarray(values, dtype=float)
        return {
            'count': int(arr.size),
            'mean': float(arr.mean()),
            'min': float(arr.min()),
            'max': float(arr.max()),
            'p95': float(np.percentile(arr, 95)),
        }

    def summary(self):
        delivered = sum(1 for r in self.riders.values() if r.get('offloaded') is not None)
        return {
            'riders_created': len(self.riders),
            'riders_delivered': delivered,
            'assignments': len(self.assignments),
            'starved_calls': len(self.starved_calls),
            'wait_time': self._describe(self.wait_times()),
            'ride_time': self._describe(self.ride_times()),
        }

    def print_summary(self):
        summary = self.summary()
        print("\n" + "=" * 60)
        print("   SIMULATION SUMMARY")
        print("=" * 60)
        print(f"Riders created:   {summary['riders_created']:>6}")
        print(f"Riders delivered: {summary['riders_delivered']:>6}")
        print(f"Assignments:      {summary['assignments']:>6}")
        print(f"Starved calls:    {summary['starved_calls']:>6}")
        for label, key in (("Waiting Time (Arrival to Boarding)", 'wait_time'),
                           ("Riding Time", 'ride_time')):
            stats = summary[key]
            if stats['count']:
                print(f"\n{label}:")
                print(f"  Count:   {stats['count']:>6} riders")
                print(f"  Average: {stats['mean']:>6.2f} seconds")
                print(f"  Min:     {stats['min']:>6.2f} seconds")
                print(f"  Max:     {stats['max']:>6.2f} seconds")
                print(f"  P95:     {stats['p95']:>6.2f} seconds")
        print("=" * 60)

    # --- output ---

    def plot_trajectory_diagram(self, output_filename='trajectory_diagram.png'):
        """
        Save a travel diagram (position in floors over time) of every car.

        Returns:
            The output filename
        """
        plt.figure(figsize=(14, 8))
        for name in sorted(self.car_trajectories, key=lambda n: int(n.split('_')[-1])):
            trajectory = self.car_trajectories[name]
            if not trajectory:
                continue
            times, positions = zip(*trajectory)
            plt.plot(times, positions, label=name, linewidth=1.5, alpha=0.8)

        plt.title("Car Trajectory Diagram")
        plt.xlabel("Time (s)")
        plt.ylabel("Position (Floor)")
        plt.grid(True, which='both', linestyle='--', alpha=0.7)
        if self.car_trajectories:
            plt.legend(loc='upper right', fontsize=9)
        plt.savefig(output_filename, dpi=150, bbox_inches='tight')
        plt.close()
        print(f"Trajectory diagram saved to {output_filename}")
        return output_filename

    def save_event_log(self, filename='simulation_log.jsonl'):
        """
        Save the event log in JSON Lines format.

        The first line holds the simulation metadata; every following line
        is one event.

        Args:
            filename (str): Name of the output file
        """
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(json.dumps({
                "type": "metadata",
                "data": self.simulation_metadata
            }, ensure_ascii=False) + '\n')
            for event in self.event_log:
                f.write(json.dumps(event, ensure_ascii=False) + '\n')
        print(f"Event log saved to {filename} ({len(self.event_log)} events)")
        return filename
