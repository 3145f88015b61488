"""netblock - block or allow network access for programs via Windows Firewall."""

__version__ = "0.1.0"
