"""Command-line tools for serving and querying the ESP32 sensors API."""
