"""trayflow: item allocation and department routing engine for repair intake trays."""

__version__ = "0.1.0"
