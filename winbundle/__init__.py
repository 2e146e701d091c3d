"""MSIX packaging for Tauri applications."""

__version__ = "0.1.0"
