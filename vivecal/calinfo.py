"""
Calibration info dump.

Writes a device's resolved sensor geometry to <dir>/<codename>_points.csv
and <dir>/<codename>_normals.csv, one "x y z" line per sensor.
"""

import logging
from pathlib import Path
from typing import List, Union

import numpy as np

from .schema import CalibrationRecord

logger = logging.getLogger(__name__)

DEFAULT_CALINFO_DIR = Path("calinfo")


def dump_calinfo(record: CalibrationRecord,
                 directory: Union[str, Path] = DEFAULT_CALINFO_DIR) -> List[Path]:
    """
    Dump sensor locations and normals for offline inspection.

    Args:
        record: Record returned by a successful load_htc_config()
        directory: Output directory, created if missing

    Returns:
        Paths of the files written (arrays that are None are skipped)
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    for suffix, values in (('points', record.sensor_locations),
                           ('normals', record.sensor_normals)):
        if values is None:
            continue
        path = directory / f"{record.codename}_{suffix}.csv"
        np.savetxt(path, values.reshape(-1, 3), fmt='%f', delimiter=' ')
        written.append(path)

    logger.debug("Wrote %d calinfo files for %s", len(written), record.codename)
    return written
