"""ParkShare booking engine backend."""
