"""sidecarpath - host-path allocation and cleanup for FUSE sidecars."""

__version__ = "0.1.0"
