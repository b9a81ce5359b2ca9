"""
PySide6 GUI for Browser Shell.
"""

from .main_window import MainWindow, run_gui

__all__ = ["MainWindow", "run_gui"]
