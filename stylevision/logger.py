# stylevision/logger.py
from rich.console import Console
from rich.traceback import install
from rich import pretty

# Pretty tracebacks for request handlers and background jobs
install(show_locals=False)
pretty.install()

# Global console logger for the whole service
console = Console()
