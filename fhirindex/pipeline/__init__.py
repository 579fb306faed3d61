"""Terminal output infrastructure."""
from .ui import console, print_build_summary, print_error, print_header, print_success, print_warning
