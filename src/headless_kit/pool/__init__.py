"""pool: page pooling and multi-browser task clusters."""
from .browser_pool import BrowserPool  # noqa: F401
from .cluster import Cluster, ConcurrencyMode  # noqa: F401
