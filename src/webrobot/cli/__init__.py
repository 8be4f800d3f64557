"""Command-line interface for WebRobot."""
