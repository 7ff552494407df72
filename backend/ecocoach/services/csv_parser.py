import csv
import io
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from ecocoach.services.errors import InvalidTripData
from ecocoach.services.types import TelemetrySample

logger = logging.getLogger(__name__)

KMH_PER_MPH = 1.609344


def normalize_column_name(name: str) -> str:
    """Convert column name to snake_case."""
    # Remove units in parentheses
    name = re.sub(r"\s*\([^)]*\)", "", name)
    # Replace spaces and special chars with underscore
    name = re.sub(r"[\s/]+", "_", name)
    # Remove consecutive underscores
    name = re.sub(r"_+", "_", name)
    # Remove leading/trailing underscores
    name = name.strip("_")
    # Convert to lowercase
    return name.lower()


def column_unit(name: str) -> Optional[str]:
    """Unit given in parentheses, e.g. 'Vehicle speed (mph)' -> 'mph'."""
    match = re.search(r"\(([^)]*)\)", name)
    return match.group(1).strip().lower() if match else None


# Normalized CSV column -> TelemetrySample field
COLUMN_MAPPING = {
    "vehicle_speed": "speed",
    "speed": "speed",
    "gps_speed": "speed",
    "engine_rpm": "engine_rpm",
    "rpm": "engine_rpm",
    "absolute_throttle_position": "throttle_position",
    "throttle_position": "throttle_position",
    "throttle": "throttle_position",
    "brake_pressure": "brake_pressure",
    "steering_angle": "steering_angle",
    "steering_wheel_angle": "steering_angle",
    "latitude": "latitude",
    "longitude": "longitude",
}

TIMESTAMP_FORMATS = ("%m/%d/%Y %I:%M:%S.%f %p", "%m/%d/%Y %I:%M:%S %p")


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an absolute timestamp as UTC; returns None when no format matches."""
    value = value.strip()
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc) if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_start_time(comment_line: str) -> Optional[datetime]:
    """Parse start time from CSV comment header."""
    # Format: # StartTime = MM/DD/YYYY HH:MM:SS.xxxx AM/PM
    match = re.search(
        r"StartTime\s*=\s*(\d{1,2}/\d{1,2}/\d{4}\s+\d{1,2}:\d{2}:\d{2}(?:\.\d+)?\s*[AP]M)",
        comment_line,
        re.IGNORECASE,
    )
    if match:
        return parse_timestamp(match.group(1))
    return None


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def parse_samples(csv_text: str, default_start: Optional[datetime] = None) -> List[TelemetrySample]:
    """
    Parse a recorded telemetry CSV into samples.

    The time column holds either elapsed seconds (relative to the StartTime
    header comment, or `default_start`) or absolute timestamps.
    """
    lines = csv_text.strip().split("\n")

    # Parse start time from comment header
    start_time = None
    data_start_idx = 0
    for i, line in enumerate(lines):
        if line.startswith("#"):
            parsed_time = parse_start_time(line)
            if parsed_time:
                start_time = parsed_time
            data_start_idx = i + 1
        else:
            break

    if not start_time:
        start_time = default_start or datetime.now(timezone.utc)

    reader = csv.DictReader(io.StringIO("\n".join(lines[data_start_idx:])))
    original_columns = reader.fieldnames or []

    time_col = None
    field_columns: Dict[str, str] = {}  # sample field -> original column
    speed_in_mph = False

    for orig in original_columns:
        norm = normalize_column_name(orig)
        orig_lower = orig.lower()
        # Time column can be "Time" or "Time (sec)"
        if orig_lower.strip() == "time" or ("time" in orig_lower and "sec" in orig_lower):
            time_col = orig
        elif norm in COLUMN_MAPPING and COLUMN_MAPPING[norm] not in field_columns:
            field_columns[COLUMN_MAPPING[norm]] = orig
            if COLUMN_MAPPING[norm] == "speed":
                speed_in_mph = column_unit(orig) == "mph"

    if time_col is None:
        raise InvalidTripData("CSV file has no time column")

    rows = list(reader)
    if not rows:
        raise InvalidTripData("CSV file contains no data rows")

    samples = []
    skipped = 0
    for row in rows:
        raw_time = row.get(time_col) or ""
        elapsed = _to_float(raw_time)
        if elapsed is not None:
            timestamp = start_time + timedelta(seconds=elapsed)
        else:
            timestamp = parse_timestamp(raw_time)
            if timestamp is None:
                skipped += 1
                continue

        values = {name: _to_float(row.get(col)) for name, col in field_columns.items()}

        if speed_in_mph and values.get("speed") is not None:
            values["speed"] = values["speed"] * KMH_PER_MPH

        # Filter out 0,0 coordinates (invalid GPS data)
        if values.get("latitude") == 0.0 and values.get("longitude") == 0.0:
            values["latitude"] = None
            values["longitude"] = None

        samples.append(TelemetrySample(timestamp=timestamp, **values))

    if skipped:
        logger.warning(f"Skipped {skipped} CSV row(s) with unparseable time values")
    if not samples:
        raise InvalidTripData("CSV file contains no parseable rows")

    return samples
