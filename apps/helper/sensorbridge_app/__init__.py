"""SensorBridge helper command-line application."""
