"""devstore — idempotent Azure storage provisioning for dev containers."""

__version__ = "0.1.0"
