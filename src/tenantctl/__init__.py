"""tenantctl - operator command line for tenant databases."""

__version__ = "0.1.0"
