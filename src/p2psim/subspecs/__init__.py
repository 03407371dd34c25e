"""Subspecifications of the simulator: kernel, underlay, protocols."""
