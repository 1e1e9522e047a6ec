# __init__.py

"""
This module initializes the user interface components for the NetSweeper project.
"""

from .logging import Colors, CustomFormatter, logger, disable_colors, display_program_info, set_verbose, signal_handler
