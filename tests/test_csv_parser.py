from datetime import datetime, timedelta, timezone

import pytest

from ecocoach.services.csv_parser import (
    KMH_PER_MPH,
    normalize_column_name,
    parse_samples,
    parse_start_time,
)
from ecocoach.services.errors import InvalidTripData

SAMPLE_CSV = """# StartTime = 03/02/2026 08:00:00.0000 AM
Time (sec),Vehicle speed (mph),Engine RPM (rpm),Absolute throttle position (%),Latitude,Longitude
0,0,800,12.5,0,0
1.5,10,1500,30,52.5200,13.4050
3,20,,35,52.5201,13.4052
"""


class TestColumnNames:
    @pytest.mark.parametrize("raw, expected", [
        ("Engine RPM (rpm)", "engine_rpm"),
        ("Vehicle speed (mph)", "vehicle_speed"),
        ("Brake pressure (bar)", "brake_pressure"),
        ("  Steering wheel angle  ", "steering_wheel_angle"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_column_name(raw) == expected


def test_parse_start_time():
    assert parse_start_time("# StartTime = 03/02/2026 01:15:30.5000 PM") == datetime(
        2026, 3, 2, 13, 15, 30, 500000, tzinfo=timezone.utc
    )
    assert parse_start_time("# Vehicle = test") is None


class TestParseSamples:
    def test_elapsed_seconds_from_header_start(self):
        samples = parse_samples(SAMPLE_CSV)
        start = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

        assert [s.timestamp for s in samples] == [
            start,
            start + timedelta(seconds=1.5),
            start + timedelta(seconds=3),
        ]

    def test_mph_converted_to_kmh(self):
        samples = parse_samples(SAMPLE_CSV)
        assert samples[1].speed == pytest.approx(10 * KMH_PER_MPH)

    def test_mapped_fields(self):
        sample = parse_samples(SAMPLE_CSV)[1]

        assert sample.engine_rpm == 1500.0
        assert sample.throttle_position == 30.0
        assert sample.latitude == 52.52
        assert sample.longitude == 13.405
        assert sample.brake_pressure is None

    def test_zero_coordinates_are_missing(self):
        sample = parse_samples(SAMPLE_CSV)[0]
        assert sample.latitude is None
        assert sample.longitude is None

    def test_blank_cells_are_missing(self):
        assert parse_samples(SAMPLE_CSV)[2].engine_rpm is None

    def test_absolute_timestamps(self):
        csv_text = (
            "Time,Speed (km/h),Brake pressure (bar),Steering angle (deg)\n"
            "2026-03-02T08:00:00+00:00,50,0,1.5\n"
            "2026-03-02T08:00:02+00:00,55,85,-3\n"
        )
        samples = parse_samples(csv_text)

        assert samples[1].timestamp == datetime(2026, 3, 2, 8, 0, 2, tzinfo=timezone.utc)
        assert samples[1].speed == 55.0
        assert samples[1].brake_pressure == 85.0
        assert samples[1].steering_angle == -3.0

    def test_default_start_without_header(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        samples = parse_samples("Time (sec),Speed\n0,10\n5,20\n", default_start=start)
        assert samples[-1].timestamp == start + timedelta(seconds=5)

    def test_unparseable_rows_are_skipped(self):
        samples = parse_samples("Time,Speed\n0,10\nsoon,20\n2,30\n")
        assert [s.speed for s in samples] == [10.0, 30.0]

    def test_header_only(self):
        with pytest.raises(InvalidTripData):
            parse_samples("Time (sec),Speed (km/h)\n")

    def test_empty_body(self):
        with pytest.raises(InvalidTripData):
            parse_samples("")

    def test_missing_time_column(self):
        with pytest.raises(InvalidTripData):
            parse_samples("Speed,RPM\n10,900\n")
