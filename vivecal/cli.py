#!/usr/bin/env python3
"""
Resolve an HTC Tracker Config

Loads a device configuration JSON (as read from an HMD, controller or
tracker), resolves it into IMU space and prints the result.

Usage:
    vivecal config.json --device HMD
    vivecal tracker.json --device TR0 --dump-dir calinfo
    vivecal wand.json --device WM0 --json
"""

import argparse
import json
from pathlib import Path
from typing import List, Optional

import numpy as np

from .calinfo import dump_calinfo
from .config_loader import ConfigStatus, load_htc_config_file
from .dispatch import ParserLimits
from .logging_utils import setup_logger
from .schema import CalibrationRecord, create_device
from .sensor_units import get_device_unit_metadata


def print_summary(record: CalibrationRecord):
    """Print a short human-readable summary of a resolved record."""
    def fmt(v):
        return "absent" if v is None else np.array2string(np.asarray(v), precision=6)

    print(f"\nDevice: {record.codename} ({record.family.value})")
    print(f"  IMU rate: {record.imu_sample_rate_hz:.0f} Hz")
    print(f"  Sensors: {record.sensor_count}")
    print(f"  acc_scale:  {fmt(record.acc_scale)}")
    print(f"  acc_bias:   {fmt(record.acc_bias)}")
    print(f"  gyro_scale: {fmt(record.gyro_scale)}")
    print(f"  gyro_bias:  {fmt(record.gyro_bias)}")
    print(f"  imu_to_trackref: rot {fmt(record.imu_to_trackref.rot)} pos {fmt(record.imu_to_trackref.pos)}")
    print(f"  head_to_imu:     rot {fmt(record.head_to_imu.rot)} pos {fmt(record.head_to_imu.pos)}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Resolve an HTC tracker configuration into IMU space',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('config', type=Path,
                        help='Path to the device configuration JSON')
    parser.add_argument('--device', '-d', default='HMD',
                        help='Device codename: HMD, WM0, WM1, TR0, TR1, WW0 (default: HMD)')
    parser.add_argument('--driver', default='vivecal',
                        help='Driver name recorded on the device')
    parser.add_argument('--dump-dir', type=Path, default=None,
                        help='Write <codename>_points.csv / _normals.csv here')
    parser.add_argument('--max-tokens', type=int, default=ParserLimits().max_tokens,
                        help='Token budget for the config document')
    parser.add_argument('--json', action='store_true',
                        help='Print the full record as JSON')
    parser.add_argument('--log-level', default=None,
                        help='DEBUG, INFO, WARNING or ERROR (default: $LOG_LEVEL or INFO)')

    args = parser.parse_args(argv)
    setup_logger(level=args.log_level)

    if not args.config.exists():
        print(f"Error: File not found: {args.config}")
        return 1

    record = create_device(args.driver, args.device)
    status = load_htc_config_file(record, args.config, ParserLimits(max_tokens=args.max_tokens))

    if status != ConfigStatus.OK:
        print(f"❌ Failed to load {args.config.name}: {status.name} ({int(status)})")
        return 1

    if args.json:
        summary = record.to_dict()
        summary['units'] = get_device_unit_metadata(record.family)
        print(json.dumps(summary, indent=2))
    else:
        print("=" * 80)
        print(f"✅ Loaded {args.config.name}")
        print("=" * 80)
        print_summary(record)

    if args.dump_dir is not None:
        for path in dump_calinfo(record, args.dump_dir):
            if not args.json:
                print(f"  ✓ Wrote {path}")

    return 0


if __name__ == '__main__':
    exit(main())
