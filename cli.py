"""cli.py

Interactive command-line interface for the ParcelSort simulation.

Program flow when you run `python main.py`:
  1) Load config.txt (optional) and parcels.csv from the data directory.
  2) Build a SortingSimulation (DestinationIndex + ParcelRegistry + clock).
  3) Receive every parcel: track it in the registry, sort it into its city queue.
  4) Provide a small menu to look up, dispatch and return parcels.

Note:
- The CLI is intentionally small; most logic lives in simulator.py,
  destination_index.py and parcel_registry.py.
"""

from __future__ import annotations

import os
from typing import List, Tuple

from data_loader import load_config, load_parcels_csv
from errors import ParcelSortError, ValidationError
from models import Parcel
from simulator import SortingSimulation


DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')


def build_simulation(data_dir: str = DATA_DIR) -> tuple[SortingSimulation, List[Parcel]]:
    """Create the simulation from config.txt and receive every parcel in parcels.csv.

    Rows with unreadable numbers and parcels the registry rejects (bad
    priority, duplicate ID, ...) are reported and skipped; the rest of the
    file still loads.
    """
    config = load_config(os.path.join(data_dir, 'config.txt'))
    sim = SortingSimulation(config)

    rejected: List[Tuple[str, ValidationError]] = []
    parcels = load_parcels_csv(os.path.join(data_dir, 'parcels.csv'), rejected)
    for pid, e in rejected:
        print(f"Skipping parcel {pid}: {e}")

    received: List[Parcel] = []
    for p in parcels:
        try:
            if sim.receive(p):
                received.append(p)
        except ParcelSortError as e:
            print(f"Skipping parcel {p.parcel_id}: {e}")
    return sim, received


def print_record(sim: SortingSimulation, parcel_id: str) -> None:
    rec = sim.lookup(parcel_id)
    if rec is None:
        print("Not found.\n")
        return
    dispatched = rec.dispatch_tick if rec.dispatch_tick != -1 else '-'
    print(
        f"\nParcel {rec.parcel_id}: {rec.destination_city}, priority {rec.priority}, size {rec.size}\n"
        f"Status: {rec.status} | arrived tick {rec.arrival_tick} | dispatched tick {dispatched} | "
        f"returns {rec.return_count}\n"
    )


def print_city_queue(sim: SortingSimulation, city: str) -> None:
    queue = sim.index.get_city_parcels(city)
    if queue is None:
        print("Unknown city.\n")
        return
    print(f"\n{city}: {queue.size()} parcel(s) waiting\n")
    print(f"{'#':>3}  {'Parcel':<12} {'Pri':>3}  {'Size':<6}")
    print('-' * 30)
    for pos, p in enumerate(queue, start=1):
        print(f"{pos:>3}  {p.parcel_id:<12} {p.priority:>3}  {str(p.size):<6}")
    print()


def print_city_listing(sim: SortingSimulation) -> None:
    print(f"\n{'City':<24} {'Parcels':>7}")
    print('-' * 32)
    for city, count in sim.index.in_order_traversal():
        print(f"{city:<24} {count:>7}")
    print()


def run_cli(data_dir: str = DATA_DIR) -> None:
    """CLI entry point."""
    print("ParcelSort Routing Program\n")

    parcels_path = os.path.join(data_dir, 'parcels.csv')
    if not os.path.exists(parcels_path):
        print("Data files not found. Please place parcels.csv in the data/ folder:")
        print(" - parcels.csv (columns: ParcelID,DestinationCity,Priority,Size,Weight,ArrivalTick)")
        print(" - config.txt  (optional: QUEUE_CAPACITY, INITIAL_CAPACITY, LOAD_FACTOR)\n")
        return

    try:
        sim, received = build_simulation(data_dir)
    except ParcelSortError as e:
        print(f"Could not start simulation: {e}\n")
        return
    print(f"Received {len(received)} parcel(s) into {sim.index.get_city_count()} city queue(s).\n")

    # ---- Interactive menu ----
    while True:
        print(f"[tick {sim.clock.now()}] Choose an option:")
        print(" 1) Lookup parcel by ID")
        print(" 2) Show a city queue")
        print(" 3) Dispatch next parcel for a city")
        print(" 4) Return a parcel")
        print(" 5) Advance the clock")
        print(" 6) List cities (alphabetical)")
        print(" 7) Show statistics")
        print(" 8) Exit")
        choice = input("> ").strip()

        if choice == '1':
            print_record(sim, input("Enter Parcel ID: ").strip())

        elif choice == '2':
            print_city_queue(sim, input("Enter city: ").strip())

        elif choice == '3':
            city = input("Enter city: ").strip()
            pid = sim.dispatch_next(city)
            print(f"Dispatched {pid}.\n" if pid else "Nothing to dispatch.\n")

        elif choice == '4':
            pid = input("Enter Parcel ID: ").strip()
            try:
                count = sim.return_parcel(pid)
            except ParcelSortError as e:
                print(f"{e}\n")
                continue
            print(f"Parcel {pid} returned ({count} return(s) so far).\n")

        elif choice == '5':
            raw = input("Ticks to advance [1]: ").strip() or '1'
            try:
                sim.tick(int(raw))
            except ValueError:
                print("Please enter a non-negative whole number.\n")

        elif choice == '6':
            print_city_listing(sim)

        elif choice == '7':
            print(sim.report())

        else:
            break
