#!/usr/bin/env python3
"""
End-to-end tests for load_htc_config().

Runs whole configuration documents through tokenize -> walk -> pose fit ->
IMU-space transform -> unit scaling, and checks the status codes and the
untouched-on-failure guarantee.
"""

import json

import numpy as np
import pytest

from vivecal import (
    ConfigStatus, ParserLimits, Pose,
    create_hmd, create_tr0, create_wm0, load_htc_config, load_htc_config_file
)
from vivecal.geometry import to_rotation


# A trimmed tracker config in the vendor layout
TRACKER_CONFIG = {
    "device_class": "generic_tracker",
    "device_serial_number": "LHR-00000000",
    "imu": {
        "acc_bias": [0.001, -0.002, 0.003],
        "acc_scale": [8192, 8192, 8192],
        "gyro_bias": [1.5, -0.5, 0.25],
        "gyro_scale": [1, 1, 1],
        "plus_x": [-1, 0, 0],
        "plus_z": [0, 0, -1],
        "position": [0.1, 0, 0]
    },
    "head": {
        "plus_x": [0, 1, 0],
        "plus_z": [1, 0, 0],
        "position": [0, 0, 0]
    },
    "lighthouse_config": {
        "channelMap": [0, 1, 2],
        "modelNormals": [[0, 0, 1], [1, 0, 0], [0, 1, 0]],
        "modelPoints": [[0.1, 0, 1], [0.1, 1, 0], [1.1, 0, 0]]
    },
    "trackref_from_head": [0, 0, 0, 1, 0, 0, 2]
}


def encode(doc):
    return json.dumps(doc).encode('utf-8')


def snapshot(record):
    return record.to_dict()


# =============================================================================
# SCENARIOS
# =============================================================================

def test_hmd_points_with_identity_imu():
    record = create_hmd("test")
    doc = (b'{"modelPoints":[[0,0,0],[1,0,0]],'
           b'"imu":{"plus_x":[1,0,0],"plus_z":[0,0,1],"position":[0,0,0]}}')

    assert load_htc_config(record, doc) == ConfigStatus.OK
    assert record.sensor_count == 2
    assert np.allclose(record.sensor_locations, [0, 0, 0, 1, 0, 0])
    assert np.allclose(record.imu_to_trackref.rot, [1, 0, 0, 0])
    assert record.imu_sample_rate_hz == 1000


def test_empty_object():
    record = create_hmd("test")
    assert load_htc_config(record, b'{}') == ConfigStatus.OK

    for name in ('sensor_locations', 'sensor_normals',
                 'acc_bias', 'acc_scale', 'gyro_bias', 'gyro_scale'):
        assert getattr(record, name) is None
    assert record.sensor_count == 0
    for pose in (record.imu_to_trackref, record.head_to_trackref, record.head_to_imu):
        assert np.allclose(pose.rot, [1, 0, 0, 0])
        assert np.allclose(pose.pos, [0, 0, 0])


def test_empty_buffer():
    record = create_hmd("test")
    before = snapshot(record)
    assert load_htc_config(record, b'') == ConfigStatus.EMPTY_INPUT
    assert snapshot(record) == before


def test_controller_acc_scale():
    record = create_wm0("test")
    assert load_htc_config(record, b'{"acc_scale":[8192,8192,8192]}') == ConfigStatus.OK
    assert np.allclose(record.acc_scale, [2, 2, 2])


def test_tracker_config_end_to_end():
    record = create_tr0("test")
    assert load_htc_config(record, encode(TRACKER_CONFIG)) == ConfigStatus.OK

    # IMU is flipped 180 degrees about y and sits at x = 0.1
    r = to_rotation(record.imu_to_trackref.rot).as_matrix()
    assert np.allclose(r, np.diag([-1, 1, -1]), atol=1e-9)
    assert np.allclose(record.imu_to_trackref.pos, [0.1, 0, 0])

    assert record.sensor_count == 3
    assert np.allclose(record.sensor_points(), [[0, 0, -1], [0, 1, 0], [-1, 0, 0]], atol=1e-9)
    assert np.allclose(record.sensor_normals.reshape(-1, 3),
                       [[0, 0, -1], [-1, 0, 0], [0, 1, 0]], atol=1e-9)

    # Head sits 2 up the z axis of the tracking reference
    assert np.allclose(record.head_to_imu.pos, [0.1, 0, -2], atol=1e-9)

    assert np.allclose(record.acc_scale, [2, 2, 2])
    assert np.allclose(record.acc_bias, [1, -2, 3])
    assert np.allclose(record.gyro_bias, [1.5, -0.5, 0.25])
    assert record.imu_sample_rate_hz == 250.0


def test_degenerate_imu_axes_keep_identity():
    record = create_hmd("test")
    doc = b'{"imu": {"plus_x": [0, 0, 0], "plus_z": [0, 0, 1], "position": [1, 2, 3]}}'

    assert load_htc_config(record, doc) == ConfigStatus.OK
    assert np.allclose(record.imu_to_trackref.rot, [1, 0, 0, 0])
    assert np.allclose(record.imu_to_trackref.pos, [0, 0, 0])


def test_trackref_from_imu_used_when_axes_missing():
    record = create_tr0("test")
    doc = b'{"trackref_from_imu": [0, 0, 0, 1, 0, 0, 1], "modelPoints": [[0, 0, 1]]}'

    assert load_htc_config(record, doc) == ConfigStatus.OK
    assert np.allclose(record.imu_to_trackref.pos, [0, 0, 1])
    assert np.allclose(record.sensor_locations, [0, 0, 0])


def test_wrong_arity_pose_keeps_prior_value():
    record = create_tr0("test")
    prior = Pose(rot=np.array([0.0, 0.0, 1.0, 0.0]), pos=np.array([1.0, 2.0, 3.0]))
    record.head_to_trackref = prior.copy()

    assert load_htc_config(record, b'{"trackref_from_head": [0, 0, 0, 1]}') == ConfigStatus.OK
    assert np.allclose(record.head_to_trackref.rot, prior.rot)
    assert np.allclose(record.head_to_trackref.pos, prior.pos)


def test_unknown_keys_do_not_change_result():
    plain = create_tr0("test")
    noisy = create_tr0("test")
    doc = dict(TRACKER_CONFIG)
    doc["firmware"] = {"version": [1, 2, 3], "notes": ["a", "b"], "imu": {"unused": [0]}}

    assert load_htc_config(plain, encode(TRACKER_CONFIG)) == ConfigStatus.OK
    assert load_htc_config(noisy, encode(doc)) == ConfigStatus.OK
    assert snapshot(plain) == snapshot(noisy)


def test_str_input_is_accepted():
    record = create_hmd("test")
    assert load_htc_config(record, '{"gyro_bias": [1, 2, 3]}') == ConfigStatus.OK
    assert np.allclose(record.gyro_bias, [1, 2, 3])


def test_points_and_normals_lengths_match():
    record = create_tr0("test")
    assert load_htc_config(record, encode(TRACKER_CONFIG)) == ConfigStatus.OK
    assert record.sensor_locations.size == record.sensor_normals.size == 3 * record.sensor_count


# =============================================================================
# FAILURES
# =============================================================================

@pytest.mark.parametrize("doc,status", [
    (b'[1, 2, 3]', ConfigStatus.NOT_AN_OBJECT),
    (b'"config"', ConfigStatus.NOT_AN_OBJECT),
    (b'{"modelPoints": [[0, 0, 0]', ConfigStatus.TOKENIZE_FAILED),
    (b'\xff{}', ConfigStatus.TOKENIZE_FAILED),
    (b'{"acc_scale": [1, "two", 3]}', ConfigStatus.PARSE_ERROR),
    (b'{"modelPoints": [[0, 0]]}', ConfigStatus.PARSE_ERROR),
    (b'{"modelPoints": [[0, 0, 0]], "modelNormals": [[0, 0, 1], [0, 1, 0]]}', ConfigStatus.PARSE_ERROR),
    (b'{"imu": {"plus_x": [1, null, 0]}}', ConfigStatus.PARSE_ERROR),
    (b'{"imu": {"plus_x": [1e400, 0, 0], "plus_z": [0, 0, 1]}}', ConfigStatus.PARSE_ERROR),
    (b'{"imu": {"plus_x": [NaN, 0, 0], "plus_z": [0, 0, 1]}}', ConfigStatus.PARSE_ERROR),
    (b'{"trackref_from_imu": [1e400, 0, 0, 1, 0, 0, 0]}', ConfigStatus.PARSE_ERROR),
    (b'{"trackref_from_imu": [NaN, 0, 0, 1, 0, 0, 0]}', ConfigStatus.PARSE_ERROR),
    (b'{"modelPoints": [[0, -Infinity, 0]]}', ConfigStatus.PARSE_ERROR),
])
def test_failures_leave_record_untouched(doc, status):
    record = create_hmd("test")
    record.acc_bias = np.array([9.0, 9.0, 9.0])
    before = snapshot(record)

    assert load_htc_config(record, doc) == status
    assert snapshot(record) == before


def test_field_error_discards_earlier_fields():
    record = create_hmd("test")
    doc = b'{"acc_bias": [1, 2, 3], "gyro_scale": [1, 2, 3], "acc_scale": [1, 2, false]}'

    assert load_htc_config(record, doc) == ConfigStatus.PARSE_ERROR
    assert record.acc_bias is None
    assert record.gyro_scale is None
    assert record.imu_sample_rate_hz == 250.0


def test_overlong_literal():
    record = create_hmd("test")
    literal = b'1' + b'0' * 200
    assert load_htc_config(record, b'{"acc_bias": [' + literal + b', 0, 0]}') == ConfigStatus.PARSE_ERROR


def test_token_budget():
    points = ', '.join(['[0, 0, 0]'] * 1100)
    doc = f'{{"modelPoints": [{points}]}}'.encode()
    record = create_hmd("test")

    assert load_htc_config(record, doc) == ConfigStatus.TOKENIZE_FAILED
    assert record.sensor_locations is None

    assert load_htc_config(record, doc, ParserLimits(max_tokens=5000)) == ConfigStatus.OK
    assert record.sensor_count == 1100


def test_nesting_limit():
    doc = ('{"a": ' * 80 + '{}' + '}' * 80).encode()
    record = create_hmd("test")

    assert load_htc_config(record, doc) == ConfigStatus.PARSE_ERROR
    assert load_htc_config(record, doc, ParserLimits(max_depth=200)) == ConfigStatus.OK


def test_load_from_file(tmp_path):
    path = tmp_path / "tracker.json"
    path.write_bytes(encode(TRACKER_CONFIG))
    record = create_tr0("test")

    assert load_htc_config_file(record, path) == ConfigStatus.OK
    assert record.sensor_count == 3


# =============================================================================
# RELOADS
# =============================================================================

def test_reload_does_not_transform_or_scale_twice():
    record = create_tr0("test")
    assert load_htc_config(record, encode(TRACKER_CONFIG)) == ConfigStatus.OK
    first = snapshot(record)

    assert load_htc_config(record, encode(TRACKER_CONFIG)) == ConfigStatus.OK
    assert snapshot(record) == first
    assert np.allclose(record.acc_scale, [2, 2, 2])


def test_reload_replaces_sensor_geometry():
    record = create_hmd("test")
    assert load_htc_config(record, b'{"modelPoints": [[0, 0, 0], [1, 0, 0]]}') == ConfigStatus.OK
    assert record.sensor_count == 2

    assert load_htc_config(record, b'{"modelNormals": [[0, 1, 0]]}') == ConfigStatus.OK
    assert record.sensor_count == 1
    assert record.sensor_locations is None
    assert np.allclose(record.sensor_normals, [0, 1, 0])


def test_reload_keeps_fields_the_config_omits():
    record = create_wm0("test")
    doc = b'{"acc_scale": [8192, 8192, 8192], "modelPoints": [[0, 0, 1]]}'
    assert load_htc_config(record, doc) == ConfigStatus.OK

    assert load_htc_config(record, b'{"gyro_bias": [1, 2, 3]}') == ConfigStatus.OK
    assert np.allclose(record.acc_scale, [2, 2, 2])
    assert np.allclose(record.gyro_bias, [1, 2, 3])
    assert record.sensor_count == 1
    assert np.allclose(record.sensor_locations, [0, 0, 1])
