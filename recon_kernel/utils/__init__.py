"""Kernel utilities."""

from recon_kernel.utils.single_flight import SingleFlightGuard

__all__ = ["SingleFlightGuard"]
