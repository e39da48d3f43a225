"""tenantctl commands."""
