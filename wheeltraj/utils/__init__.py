"""JSON I/O for robot configs, paths and trajectories."""
