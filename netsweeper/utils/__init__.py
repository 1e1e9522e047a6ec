# __init__.py

"""
This module initializes global variables shared by the NetSweeper utilities.
Attributes:
    stop_event (threading.Event): An event used to signal worker threads to stop.
    interrupt_handled (bool): A flag indicating whether an interrupt has been handled.
"""

import threading

stop_event = threading.Event()
interrupt_handled = False
