import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from sensorbridge_telemetry.classifier import (
    Thresholds,
    classify_board_temperature,
    classify_cpu_temperature,
    classify_fan,
    classify_gpu_reading,
    classify_storage_counter,
    classify_storage_reading,
    classify_voltage,
    infer_media_type,
)
from sensorbridge_telemetry.models import MediaType, RawReading, SensorCategory


def _reading(category, value, name="Sensor", hardware="HW", **params):
    return RawReading(category=category, hardware=hardware, name=name, value=value, parameters=params)


class TemperatureFilterTests(unittest.TestCase):
    def test_bounds(self):
        self.assertIsNone(classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, 0.0)))
        self.assertIsNone(classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, -4.0)))
        self.assertIsNone(classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, 200.1)))
        upper = classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, 200.0))
        self.assertIsNotNone(upper)
        self.assertEqual(upper.temperature, 200.0)

    def test_missing_and_non_finite_values_dropped(self):
        self.assertIsNone(classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, None)))
        self.assertIsNone(classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, float("nan"))))
        self.assertIsNone(classify_board_temperature(_reading(SensorCategory.TEMPERATURE, float("inf"))))

    def test_wrong_category_ignored(self):
        self.assertIsNone(classify_cpu_temperature(_reading(SensorCategory.LOAD, 50.0)))

    def test_board_temperature_uses_same_bounds(self):
        self.assertIsNone(classify_board_temperature(_reading(SensorCategory.TEMPERATURE, 255.0)))
        record = classify_board_temperature(_reading(SensorCategory.TEMPERATURE, 41.96, name="System", hardware="NCT"))
        self.assertEqual(record.name, "NCT - System")
        self.assertEqual(record.temperature, 42.0)


class CpuThresholdTests(unittest.TestCase):
    def test_tjmax_parameter_sets_high(self):
        record = classify_cpu_temperature(
            _reading(SensorCategory.TEMPERATURE, 65.34, name="Core", hardware="Ryzen", TjMax=95.0)
        )
        self.assertEqual(record.name, "Ryzen - Core")
        self.assertEqual(record.temperature, 65.3)
        self.assertEqual(record.high, 95.0)
        self.assertEqual(record.critical, 105.0)

    def test_default_high_without_parameter(self):
        record = classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, 50.0))
        self.assertEqual(record.high, 100.0)
        self.assertEqual(record.critical, 105.0)

    def test_sub_hardware_ignores_tjmax(self):
        record = classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, 50.0, TjMax=90.0), use_tjmax=False)
        self.assertEqual(record.high, 100.0)

    def test_custom_thresholds(self):
        record = classify_cpu_temperature(
            _reading(SensorCategory.TEMPERATURE, 50.0), thresholds=Thresholds(default_high=90.0, critical=98.0)
        )
        self.assertEqual((record.high, record.critical), (90.0, 98.0))


class FanVoltageTests(unittest.TestCase):
    def test_fan_zero_kept_negative_dropped(self):
        self.assertEqual(classify_fan(_reading(SensorCategory.FAN, 0.0)).rpm, 0.0)
        self.assertIsNone(classify_fan(_reading(SensorCategory.FAN, -1.0)))

    def test_fan_rounds_to_whole_rpm_and_uses_sensor_name(self):
        record = classify_fan(_reading(SensorCategory.FAN, 1187.6, name="CPU Fan", hardware="NCT"))
        self.assertEqual(record.name, "CPU Fan")
        self.assertEqual(record.rpm, 1188.0)

    def test_voltage_filter_and_rounding(self):
        self.assertIsNone(classify_voltage(_reading(SensorCategory.VOLTAGE, 0.0)))
        self.assertIsNone(classify_voltage(_reading(SensorCategory.VOLTAGE, -0.5)))
        self.assertEqual(classify_voltage(_reading(SensorCategory.VOLTAGE, 1.23456)).voltage, 1.235)

    def test_rounding_is_idempotent(self):
        once = classify_voltage(_reading(SensorCategory.VOLTAGE, 3.30449)).voltage
        twice = classify_voltage(_reading(SensorCategory.VOLTAGE, once)).voltage
        self.assertEqual(once, twice)
        temp = classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, 71.849)).temperature
        self.assertEqual(classify_cpu_temperature(_reading(SensorCategory.TEMPERATURE, temp)).temperature, temp)


class GpuReadingTests(unittest.TestCase):
    def test_temperature_requires_core_or_gpu_in_name(self):
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.TEMPERATURE, 54.44, name="GPU Core")), ("temperature", 54.4))
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.TEMPERATURE, 60.0, name="Core")), ("temperature", 60.0))
        self.assertIsNone(classify_gpu_reading(_reading(SensorCategory.TEMPERATURE, 60.0, name="Memory Junction")))

    def test_name_matching_is_case_sensitive(self):
        self.assertIsNone(classify_gpu_reading(_reading(SensorCategory.TEMPERATURE, 60.0, name="gpu core")))

    def test_load_split(self):
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.LOAD, 37.26, name="GPU Core")), ("core_load", 37.3))
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.LOAD, 14.0, name="GPU Memory")), ("memory_load", 14.0))
        self.assertIsNone(classify_gpu_reading(_reading(SensorCategory.LOAD, 3.0, name="GPU Video Engine")))

    def test_power_and_clocks(self):
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.POWER, 120.36, name="GPU Package")), ("power", 120.4))
        self.assertIsNone(classify_gpu_reading(_reading(SensorCategory.POWER, 30.0, name="Board")))
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.CLOCK, 2505.7, name="GPU Core")), ("core_clock", 2506.0))
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.CLOCK, 11201.2, name="GPU Memory")), ("memory_clock", 11201.0))

    def test_fan_always_maps_to_fan_speed(self):
        self.assertEqual(classify_gpu_reading(_reading(SensorCategory.FAN, 1450.4, name="Anything")), ("fan_speed", 1450.0))
        self.assertIsNone(classify_gpu_reading(_reading(SensorCategory.FAN, -2.0, name="GPU Fan")))


class StorageReadingTests(unittest.TestCase):
    def test_media_type_inference(self):
        self.assertIs(infer_media_type("Samsung SSD 990 PRO NVMe"), MediaType.NVME)
        self.assertIs(infer_media_type("Crucial MX500 ssd"), MediaType.SSD)
        self.assertIs(infer_media_type("WDC WD40EFRX"), MediaType.HDD)

    def test_direct_fields(self):
        self.assertEqual(classify_storage_reading(_reading(SensorCategory.TEMPERATURE, 38.96)), ("temperature", 39.0))
        self.assertEqual(
            classify_storage_reading(_reading(SensorCategory.LEVEL, 98.0, name="Remaining Life")), ("remaining_life", 98.0)
        )
        self.assertIsNone(classify_storage_reading(_reading(SensorCategory.LEVEL, 2.0, name="Percentage Used")))

    def test_bytes_written_converts_gigabytes(self):
        self.assertEqual(
            classify_storage_reading(_reading(SensorCategory.DATA, 1.0, name="Data Written")),
            ("total_bytes_written", 1073741824),
        )
        self.assertIsNone(classify_storage_reading(_reading(SensorCategory.DATA, 1.0, name="Data Read")))

    def test_counters_match_any_category_and_truncate(self):
        self.assertEqual(classify_storage_counter(_reading(SensorCategory.DATA, 3.9, name="Media Errors")), ("media_errors", 3))
        self.assertEqual(classify_storage_counter(_reading(SensorCategory.LEVEL, 7, name="media_error_count")), ("media_errors", 7))
        self.assertEqual(classify_storage_counter(_reading(SensorCategory.DATA, 412.7, name="Power Cycles")), ("power_cycles", 412))
        self.assertEqual(
            classify_storage_counter(_reading(SensorCategory.DATA, 23, name="Unsafe Shutdowns")), ("unsafe_shutdowns", 23)
        )
        self.assertEqual(
            classify_storage_counter(_reading(SensorCategory.DATA, 5120, name="Power On Hours")), ("power_on_hours", 5120)
        )
        self.assertIsNone(classify_storage_counter(_reading(SensorCategory.DATA, 1, name="Data Read")))

    def test_hyphenated_power_on_hours_hits_power_cycles_first(self):
        self.assertEqual(
            classify_storage_counter(_reading(SensorCategory.DATA, 900, name="Power-On Hours")), ("power_cycles", 900)
        )


if __name__ == "__main__":
    unittest.main()
