"""E-invoicing partner assistant: multi-agent chat and onboarding report backend."""

__version__ = "1.0.0"
