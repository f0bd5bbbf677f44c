"""Core configuration, paths and theming for sidecarpath."""
