import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sensorbridge_core.changes import UNSET, SensorCounts, detect_changes
from sensorbridge_telemetry.models import FanRecord, GpuRecord, Snapshot, TemperatureRecord


def _snapshot(temps=1, fans=2):
    return Snapshot(
        sensors=tuple(TemperatureRecord(f"CPU - Core {i}", 50.0, 100.0, 105.0) for i in range(temps)),
        fans=tuple(FanRecord(f"Fan {i}", 900.0) for i in range(fans)),
        gpus=(GpuRecord(name="GPU"),),
    )


class ChangeDetectorTests(unittest.TestCase):
    def test_first_call_reports_every_category(self):
        counts, message = detect_changes(_snapshot(), SensorCounts())
        self.assertEqual(message, "Sensor counts changed: temp=1 fan=2 gpu=1 storage=0 voltage=0 mb_temp=0")
        self.assertEqual(counts, SensorCounts(1, 2, 1, 0, 0, 0))

    def test_identical_counts_are_silent_and_keep_state(self):
        counts, _ = detect_changes(_snapshot(), SensorCounts())
        again, message = detect_changes(_snapshot(), counts)
        self.assertIsNone(message)
        self.assertIs(again, counts)

    def test_only_changed_categories_listed(self):
        counts, _ = detect_changes(_snapshot(), SensorCounts())
        counts, message = detect_changes(_snapshot(temps=3, fans=2), counts)
        self.assertEqual(message, "Sensor counts changed: temp=3")
        self.assertEqual(counts.sensors, 3)
        self.assertEqual(counts.fans, 2)

    def test_sentinel_default(self):
        self.assertEqual(SensorCounts().motherboard_temps, UNSET)
        self.assertEqual(SensorCounts.of(Snapshot()), SensorCounts(0, 0, 0, 0, 0, 0))


if __name__ == "__main__":
    unittest.main()
