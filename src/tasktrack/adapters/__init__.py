"""Store, cache and job-queue adapters."""
