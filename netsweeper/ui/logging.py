# logging.py

"""
This module provides logging functionalities with custom formatting and color-coded output for terminal display.
"""

import logging, sys
from netsweeper import utils

# Terminal color codes
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    MAGENTA = '\033[35m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'

def display_program_info():
    """Displays information about the program at startup."""

    BANNER = Colors.CYAN + r"""
    #    _   _      _   ____                                   
    #   | \ | | ___| |_/ ___|_      _____  ___ _ __   ___ _ __ 
    #   |  \| |/ _ \ __\___ \ \ /\ / / _ \/ _ \ '_ \ / _ \ '__|
    #   | |\  |  __/ |_ ___) \ V  V /  __/  __/ |_) |  __/ |   
    #   |_| \_|\___|\__|____/ \_/\_/ \___|\___| .__/ \___|_|   
    #                                         |_|  Version : 1.0.0
    """ + Colors.ENDC

    print(BANNER)
    print(f"{Colors.BOLD}LAN discovery: ping sweep, MAC vendors, names and ports{Colors.ENDC}\n")



# Configure logging with a custom formatter
class CustomFormatter(logging.Formatter):
    """Custom formatter for log messages based on their level."""
    def format(self, record):
        prefix = ""
        suffix = ""
        
        if record.levelno == logging.ERROR:
            prefix = Colors.RED
            suffix = Colors.ENDC
        elif record.levelno == logging.INFO:
            prefix = Colors.GREEN
            suffix = Colors.ENDC
        elif record.levelno == logging.WARNING:
            prefix = Colors.YELLOW
            suffix = Colors.ENDC
            
        record.msg = f"{prefix}{record.msg}{suffix}"
        return super().format(record)

logger = logging.getLogger("netsweeper")
logger.setLevel(logging.INFO)
if not logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(CustomFormatter('%(asctime)s - %(levelname)s - %(message)s'))
    logger.addHandler(_handler)
logging.getLogger("urllib3").setLevel(logging.WARNING)

def set_verbose(enabled: bool) -> None:
    """Switch the NetSweeper logger between INFO and DEBUG."""
    logger.setLevel(logging.DEBUG if enabled else logging.INFO)

def signal_handler(signum: int, frame) -> None:
    """Handle interrupt signals to stop the sweep gracefully."""
    if not utils.interrupt_handled:
        utils.interrupt_handled = True
        utils.stop_event.set()
        logger.info(f"{Colors.YELLOW}Gracefully shutting down NetSweeper...{Colors.ENDC}")
        logger.info(f"{Colors.YELLOW}Waiting for running probes to finish...{Colors.ENDC}")
    else:
        sys.exit(130)
    
def disable_colors():
    """Disable colored output by setting all color codes to empty strings."""
    for attr in dir(Colors):
        if not attr.startswith('_'):
            setattr(Colors, attr, '')
