"""main.py

Entry point: `python main.py [--data DIR] [--log-level LEVEL]`.
"""

from __future__ import annotations

import argparse
import logging

from cli import DATA_DIR, run_cli


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="ParcelSort routing simulation")
    parser.add_argument('--data', default=DATA_DIR, help="directory holding parcels.csv and config.txt")
    parser.add_argument('--log-level', default='WARNING', help="logging level for index/registry events")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    run_cli(args.data)


if __name__ == '__main__':
    main()
