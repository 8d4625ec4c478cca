"""dbz-oracle-diag - Debezium Oracle CDC diagnostics.

Profiles an Oracle database over a sampling window and recommends
LogMiner connector configuration.
"""

__version__ = "1.0.0"

from dbz_diag.config import get_settings

__all__ = ["__version__", "get_settings"]
