"""Feature modules: accounts, strategies, quotas and assets."""
